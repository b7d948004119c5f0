"""
Request pipeline stages.

Each stage is a plain ASGI middleware so it can wrap the send/receive
channels directly:
- SecurityHeadersMiddleware: helmet-style response headers
- RequestLoggingMiddleware: one log line per request (development)
- MongoSanitizeMiddleware: strips operator keys from JSON bodies and query strings
- UnhandledErrorMiddleware: turns uncaught exceptions into the JSON error body
"""

import json
import logging
import time
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from jobtracker.core.exceptions import unexpected_error_response
from jobtracker.utils.sanitize import is_prohibited_key, sanitize

logger = logging.getLogger(__name__)


def build_content_security_policy(connect_origin: str) -> str:
    directives = {
        "default-src": ["'self'"],
        "connect-src": ["'self'", connect_origin],
        "script-src": ["'self'", "'unsafe-inline'"],
        "style-src": ["'self'", "'unsafe-inline'"],
        "img-src": ["'self'", "data:", "https:"],
        "base-uri": ["'self'"],
        "font-src": ["'self'", "https:", "data:"],
        "form-action": ["'self'"],
        "frame-ancestors": ["'self'"],
        "object-src": ["'none'"],
    }
    return "; ".join(f"{name} {' '.join(sources)}" for name, sources in directives.items())


class SecurityHeadersMiddleware:
    """
    Adds security headers to every response.

    Cross-Origin-Embedder-Policy and Cross-Origin-Resource-Policy are left
    unset so the bundle can load third-party images.
    """

    def __init__(self, app: ASGIApp, connect_origin: str, hsts: bool = False):
        self.app = app
        self.headers = {
            "Content-Security-Policy": build_content_security_policy(connect_origin),
            "Cross-Origin-Opener-Policy": "same-origin",
            "Origin-Agent-Cluster": "?1",
            "Referrer-Policy": "no-referrer",
            "X-Content-Type-Options": "nosniff",
            "X-DNS-Prefetch-Control": "off",
            "X-Download-Options": "noopen",
            "X-Frame-Options": "SAMEORIGIN",
            "X-Permitted-Cross-Domain-Policies": "none",
            "X-XSS-Protection": "0",
        }
        if hsts:
            self.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)


class RequestLoggingMiddleware:
    """Logs method, path, status and duration for each request."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500

        async def send_with_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(f"{scope['method']} {scope['path']} {status_code} - {elapsed_ms:.1f} ms")


class MongoSanitizeMiddleware:
    """
    Removes keys starting with '$' or containing '.' from JSON request
    bodies and from the query string.

    Bodies that are not JSON, or not valid JSON, are forwarded untouched and
    left for request validation to reject.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = self._sanitize_query_string(scope)

        content_type = Headers(scope=scope).get("content-type", "")
        if not content_type.startswith("application/json"):
            await self.app(scope, receive, send)
            return

        body = await self._read_body(receive)
        body, changed = self._sanitize_body(body)
        if changed:
            logger.warning(f"Stripped prohibited keys from {scope['method']} {scope['path']} body")
            scope = dict(scope)
            scope["headers"] = [
                (name, value) for name, value in scope["headers"] if name.lower() != b"content-length"
            ] + [(b"content-length", str(len(body)).encode("latin-1"))]

        replayed = False

        async def replay_receive() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay_receive, send)

    @staticmethod
    async def _read_body(receive: Receive) -> bytes:
        chunks = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break
        return b"".join(chunks)

    @staticmethod
    def _sanitize_body(body: bytes) -> tuple[bytes, bool]:
        if not body:
            return body, False
        try:
            payload = json.loads(body)
        except ValueError:
            return body, False

        cleaned, changed = sanitize(payload)
        if not changed:
            return body, False
        return json.dumps(cleaned).encode("utf-8"), True

    @staticmethod
    def _sanitize_query_string(scope: Scope) -> Scope:
        raw = scope.get("query_string", b"")
        if not raw:
            return scope

        pairs = parse_qsl(raw.decode("latin-1"), keep_blank_values=True)
        kept = [(key, value) for key, value in pairs if not is_prohibited_key(key)]
        if len(kept) == len(pairs):
            return scope

        scope = dict(scope)
        scope["query_string"] = urlencode(kept).encode("latin-1")
        return scope


class UnhandledErrorMiddleware:
    """
    Innermost stage: converts exceptions the router let through into a 500
    error body, so the outer stages still add their headers to it.

    A failure after the response has started cannot be replaced and is
    re-raised.
    """

    def __init__(self, app: ASGIApp, hide_details: bool = False):
        self.app = app
        self.hide_details = hide_details

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking_start)
        except Exception as exc:
            if response_started:
                raise
            response = unexpected_error_response(scope["method"], scope["path"], exc, self.hide_details)
            await response(scope, receive, send)

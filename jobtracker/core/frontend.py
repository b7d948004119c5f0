"""
Front-end serving.

Production: files from the compiled React bundle, with index.html as the
fallback for client-side routes. API paths never fall back.
Development: the CRA dev server serves the client, so / only answers with a
placeholder.
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, PlainTextResponse

from jobtracker.core.config import Settings
from jobtracker.core.exceptions import NotFoundError, ROUTE_NOT_FOUND_MESSAGE

logger = logging.getLogger(__name__)

API_PREFIX = "api"
CATCH_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


def resolve_bundle_file(build_dir: str, path: str) -> str:
    """
    Map a request path to a file inside the bundle, or to index.html.

    Paths that escape build_dir resolve to index.html.
    """
    root = os.path.realpath(build_dir)
    candidate = os.path.realpath(os.path.join(root, path.lstrip("/")))
    if candidate.startswith(root + os.sep) and os.path.isfile(candidate):
        return candidate
    return os.path.join(root, "index.html")


def register_frontend(app: FastAPI, settings: Settings) -> None:
    """Register the catch-all front-end route. Must run after the API routers."""
    if not settings.is_production:
        @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
        async def dev_placeholder():
            return "API is running..."
        return

    build_dir = settings.client_build_dir
    if not os.path.isfile(os.path.join(build_dir, "index.html")):
        logger.warning(f"Front-end bundle not found at {build_dir}; only the API will be served")

    # Every method is caught here so unmatched non-GET requests also end in a 404
    @app.api_route("/{full_path:path}", methods=CATCH_ALL_METHODS, include_in_schema=False)
    async def serve_frontend(full_path: str, request: Request):
        if request.method not in ("GET", "HEAD"):
            raise NotFoundError(ROUTE_NOT_FOUND_MESSAGE)
        if full_path == API_PREFIX or full_path.startswith(API_PREFIX + "/"):
            raise NotFoundError(ROUTE_NOT_FOUND_MESSAGE)

        file_path = resolve_bundle_file(build_dir, full_path)
        if not os.path.isfile(file_path):
            raise NotFoundError(ROUTE_NOT_FOUND_MESSAGE)
        return FileResponse(file_path)

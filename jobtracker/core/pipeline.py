"""
Request pipeline assembly.

The stages are declared here in the order a request meets them. Starlette
wraps middleware in reverse registration order, so install_pipeline() adds
them back to front. The typed error handlers (exceptions.register_error_handlers)
are not a stage in this list: Starlette places them between the last stage
and the router. Anything they do not recognise is converted by the last
stage, "errors", so every response still passes back through the others.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobtracker.core.config import Settings
from jobtracker.core.middleware import (
    MongoSanitizeMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


@dataclass
class PipelineStage:
    name: str
    middleware: Callable[..., Any]
    options: dict[str, Any] = field(default_factory=dict)


def build_pipeline(settings: Settings) -> list[PipelineStage]:
    """Return the stages for this configuration, outermost first."""
    connect_origin = settings.cors_origins_list[0] if settings.cors_origins_list else "'self'"

    stages = [
        PipelineStage(
            "security_headers",
            SecurityHeadersMiddleware,
            {"connect_origin": connect_origin, "hsts": settings.is_production},
        ),
        PipelineStage(
            "cors",
            CORSMiddleware,
            {
                "allow_origins": settings.cors_origins_list,
                "allow_credentials": True,
                "allow_methods": CORS_METHODS,
                "allow_headers": CORS_HEADERS,
            },
        ),
    ]
    if not settings.is_production:
        stages.append(PipelineStage("request_logging", RequestLoggingMiddleware))
    stages.append(PipelineStage("sanitize", MongoSanitizeMiddleware))
    stages.append(PipelineStage("errors", UnhandledErrorMiddleware, {"hide_details": settings.is_production}))
    return stages


def install_pipeline(app: FastAPI, stages: list[PipelineStage]) -> None:
    for stage in reversed(stages):
        app.add_middleware(stage.middleware, **stage.options)

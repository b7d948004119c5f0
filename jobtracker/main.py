"""
Job Application Tracker - Main Application

FastAPI backend with:
- MongoDB for users and job application records
- JWT authentication (Authorization header or httponly cookie)
- React front end served from the compiled bundle in production

Run: jobtracker            (connects to MongoDB, then binds the port)
 or: uvicorn jobtracker.main:app
"""

import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from pymongo.database import Database

from jobtracker import __version__
from jobtracker.api import api_router
from jobtracker.core.auth import build_password_context
from jobtracker.core.config import Settings, get_settings
from jobtracker.core.context import AppContext
from jobtracker.core.exceptions import DatabaseConnectionError, register_error_handlers
from jobtracker.core.frontend import register_frontend
from jobtracker.core.logging_config import get_logger, setup_logging
from jobtracker.core.pipeline import build_pipeline, install_pipeline
from jobtracker.db.mongodb import open_database
from jobtracker.schemas.schemas import HealthResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Connect to MongoDB before serving when no database was handed in.

    uvicorn runs this before binding the port, so a failed connect aborts
    startup instead of serving without a store.
    """
    if app.state.context is None:
        settings = app.state.settings
        setup_logging(level=settings.log_level, log_file=settings.log_file)
        try:
            db = open_database(settings)
        except DatabaseConnectionError as e:
            logger.critical(f"{e.message}. Aborting startup.")
            raise
        app.state.context = AppContext(settings=settings, db=db, pwd_context=build_password_context(settings))
    logger.info(f"Job tracker API ready ({app.state.settings.environment} mode)")
    yield
    logger.info("Shutting down job tracker API")


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    """
    Assemble the application.

    Order matters and is fixed here: pipeline stages, API routers, health,
    front end (catch-all, so last among routes), then the error funnel.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Job Application Tracker",
        description="Register, log in and track job applications.",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.context = (
        AppContext(settings=settings, db=db, pwd_context=build_password_context(settings))
        if db is not None
        else None
    )

    install_pipeline(app, build_pipeline(settings))

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        return HealthResponse(status="ok")

    register_frontend(app, settings)
    register_error_handlers(app, settings)
    return app


app = create_app()


def run() -> None:
    """
    Console entry point.

    Startup is strictly ordered: the database must answer before the
    listener binds. A connection failure exits the process with status 1.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level, log_file=settings.log_file)

    try:
        db = open_database(settings)
    except DatabaseConnectionError as e:
        logger.critical(f"{e.message}. Exiting.")
        sys.exit(1)

    application = create_app(settings, db=db)
    logger.info(f"Starting server on port {settings.port}...")
    uvicorn.run(application, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()

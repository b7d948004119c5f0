"""
API module - FastAPI routers and endpoint definitions.

Usage:
    from jobtracker.api import api_router
    app.include_router(api_router, prefix="/api/v1")
"""

from jobtracker.api.routes import api_router

__all__ = ["api_router"]

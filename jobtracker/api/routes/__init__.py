"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from jobtracker.api.routes.auth_routes import router as auth_router
from jobtracker.api.routes.job_routes import router as job_router

# Main API router, mounted under /api/v1
api_router = APIRouter()

# Auth routes are public; job routes carry the auth gate themselves
api_router.include_router(auth_router)
api_router.include_router(job_router)


@api_router.get("", response_class=PlainTextResponse, include_in_schema=False)
async def api_root():
    return "Hello"

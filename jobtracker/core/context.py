"""
Application and request context.

AppContext is built once at startup and stored on app.state; route handlers
reach it through get_app_context(). RequestContext is produced by the auth
gate and passed to every job handler as an explicit parameter.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict
from pymongo.database import Database

from jobtracker.core.config import Settings
from jobtracker.core.exceptions import InternalError


@dataclass
class AppContext:
    settings: Settings
    db: Database
    pwd_context: CryptContext


class RequestContext(BaseModel):
    """Identity attached to a request by the auth gate."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    token_expires_at: Optional[int] = None


def get_app_context(request: Request) -> AppContext:
    """FastAPI dependency - the context the running app was started with."""
    context: Optional[AppContext] = getattr(request.app.state, "context", None)
    if context is None:
        raise InternalError("Application context is not initialised")
    return context

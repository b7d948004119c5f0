"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- The auth gate dependency for protected routes
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from fastapi import Cookie, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from jobtracker.core.config import Settings
from jobtracker.core.context import AppContext, RequestContext, get_app_context
from jobtracker.core.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

TOKEN_COOKIE_NAME = "token"

# Bearer token extractor; a missing header falls through to the cookie
bearer_scheme = HTTPBearer(auto_error=False)


def build_password_context(settings: Settings) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)


def hash_password(pwd_context: CryptContext, password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(pwd_context: CryptContext, plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token for a user id."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_lifetime_minutes))
    to_encode = {"sub": user_id, "iat": now, "exp": expire}
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """
    Decode and verify JWT token.

    Raises UnauthenticatedError for bad signatures, expired tokens and
    tokens without a subject.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise UnauthenticatedError("Token has expired")
    except JWTError as e:
        logger.info(f"Rejected invalid token: {e}")
        raise UnauthenticatedError("Authentication invalid")

    # Subjects are user ObjectIds
    if not ObjectId.is_valid(str(payload.get("sub") or "")):
        raise UnauthenticatedError("Authentication invalid")
    return payload


def authenticate_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_cookie: Optional[str] = Cookie(None, alias=TOKEN_COOKIE_NAME),
    context: AppContext = Depends(get_app_context),
) -> RequestContext:
    """
    FastAPI dependency - the auth gate.

    Reads the token from the Authorization header, falling back to the
    token cookie, and returns the caller's identity. Verification only;
    the database is not consulted.

    Usage:
        @router.get("/protected")
        def route(ctx: RequestContext = Depends(authenticate_user)):
            return ctx.user_id
    """
    token = credentials.credentials if credentials else token_cookie
    if not token:
        raise UnauthenticatedError("Authentication invalid")

    payload = decode_token(token, context.settings)
    return RequestContext(user_id=str(payload["sub"]), token_expires_at=payload.get("exp"))

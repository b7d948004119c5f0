"""
Authentication Routes

POST  /auth/register - Register new user, returns user + JWT token
POST  /auth/login    - Login and get JWT token
GET   /auth/me       - Get current user info
PATCH /auth/me       - Update current user profile
POST  /auth/logout   - Clear the token cookie
"""

import logging

from fastapi import APIRouter, Depends, Response

from jobtracker.core.auth import (
    TOKEN_COOKIE_NAME,
    authenticate_user,
    create_access_token,
    hash_password,
    verify_password,
)
from jobtracker.core.context import AppContext, RequestContext, get_app_context
from jobtracker.core.exceptions import ConflictError, UnauthenticatedError
from jobtracker.schemas.schemas import (
    AuthResponse, CurrentUserResponse, LoginRequest, MessageResponse, RegisterRequest, UserUpdate
)
from jobtracker.services.mongo_service import UserService, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


def set_token_cookie(response: Response, token: str, context: AppContext) -> None:
    settings = context.settings
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=settings.jwt_lifetime_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: RegisterRequest, response: Response, context: AppContext = Depends(get_app_context)):
    """
    Register a new user account.

    Returns the profile and a token, so the client is logged in right away.
    """
    users = UserService(context.db)
    email = request.email.lower()

    if users.get_by_email(email):
        raise ConflictError("Email already in use")

    user = users.create(
        email=email,
        password_hash=hash_password(context.pwd_context, request.password),
        profile=request.model_dump(include={"name", "last_name", "location"}),
    )
    logger.info(f"Registered user {user['_id']}")

    token = create_access_token(str(user["_id"]), context.settings)
    set_token_cookie(response, token, context)
    return AuthResponse(user=serialize_user(user), token=token)


@router.post("/login", response_model=AuthResponse)
def login(request: LoginRequest, response: Response, context: AppContext = Depends(get_app_context)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    (the httponly cookie set here works too)
    """
    users = UserService(context.db)
    user = users.get_by_email(request.email.lower())

    if not user:
        # Unknown emails still cost one bcrypt verification, like a wrong password
        context.pwd_context.dummy_verify()
        raise UnauthenticatedError(INVALID_CREDENTIALS)
    if not verify_password(context.pwd_context, request.password, user["password"]):
        raise UnauthenticatedError(INVALID_CREDENTIALS)

    token = create_access_token(str(user["_id"]), context.settings)
    set_token_cookie(response, token, context)
    return AuthResponse(user=serialize_user(user), token=token)


@router.get("/me", response_model=CurrentUserResponse)
def get_me(ctx: RequestContext = Depends(authenticate_user), context: AppContext = Depends(get_app_context)):
    """Get current authenticated user's info."""
    user = UserService(context.db).get_by_id(ctx.user_id)
    if not user:
        raise UnauthenticatedError("Authentication invalid")
    return CurrentUserResponse(user=serialize_user(user))


@router.patch("/me", response_model=AuthResponse)
def update_me(
    update: UserUpdate,
    response: Response,
    ctx: RequestContext = Depends(authenticate_user),
    context: AppContext = Depends(get_app_context),
):
    """Update the caller's profile. A fresh token is issued with the result."""
    users = UserService(context.db)
    fields = {key: value for key, value in update.model_dump(exclude_unset=True).items() if value is not None}

    if "email" in fields:
        fields["email"] = fields["email"].lower()
        existing = users.get_by_email(fields["email"])
        if existing and str(existing["_id"]) != ctx.user_id:
            raise ConflictError("Email already in use")

    user = users.update(ctx.user_id, fields) if fields else users.get_by_id(ctx.user_id)
    if not user:
        raise UnauthenticatedError("Authentication invalid")

    token = create_access_token(ctx.user_id, context.settings)
    set_token_cookie(response, token, context)
    return AuthResponse(user=serialize_user(user), token=token)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, context: AppContext = Depends(get_app_context)):
    """Clear the token cookie. Tokens are stateless, so nothing is revoked server-side."""
    response.delete_cookie(
        key=TOKEN_COOKIE_NAME,
        httponly=True,
        secure=context.settings.is_production,
        samesite="lax",
    )
    return MessageResponse(message="User logged out")

"""Authentication API routes.

Clients sign in with a username and password, or by exchanging the
long-lived login-link token an admin sent them for a session token.
"""

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from ..dependencies import get_user_repository
from ..middleware.auth import CurrentUser, get_current_user
from ..middleware.rate_limit import RATE_LIMIT_LOGIN, limiter
from ..responses import success
from ...db.repositories import User, UserRepository
from ...exceptions import AuthenticationError, ErrorCode
from ...services.auth_service import (
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
    get_auth_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# Request Models
class LoginRequest(BaseModel):
    """Request model for username/password login."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginLinkRequest(BaseModel):
    """Request model for the login-link exchange."""

    token: str = Field(min_length=1)


def _session_payload(auth_service: AuthService, user: User) -> dict:
    token = auth_service.create_session_token(
        user_id=user.id,
        username=user.username,
        email=user.email,
        is_admin=user.is_admin,
    )
    return {"token": token, "user": user.to_public_dict()}


@router.post("/login")
@limiter.limit(RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    login_request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    users: UserRepository = Depends(get_user_repository),
):
    """Authenticate with username and password and return a session token."""
    user = users.get_by_username(login_request.username)
    if (
        user is None
        or not user.is_active
        or not auth_service.verify_password(login_request.password, user.password_hash)
    ):
        logger.info(f"Failed login for {login_request.username}")
        raise AuthenticationError("Invalid credentials", ErrorCode.INVALID_CREDENTIALS)

    users.update_last_login(user.id)
    return success(_session_payload(auth_service, user), message="Login successful")


@router.post("/login-link")
@limiter.limit(RATE_LIMIT_LOGIN)
async def login_with_link(
    request: Request,
    link_request: LoginLinkRequest,
    auth_service: AuthService = Depends(get_auth_service),
    users: UserRepository = Depends(get_user_repository),
):
    """Exchange a login-link token for a session token."""
    try:
        payload = auth_service.verify_login_link_token(link_request.token)
    except TokenExpiredError:
        raise AuthenticationError("Login link has expired", ErrorCode.TOKEN_EXPIRED)
    except InvalidTokenError as e:
        raise AuthenticationError(str(e), ErrorCode.INVALID_TOKEN)

    user = users.get_active_by_id(payload["userId"])
    if user is None:
        raise AuthenticationError("User not found or inactive")

    users.update_last_login(user.id)
    return success(_session_payload(auth_service, user), message="Login successful")


@router.get("/verify")
async def verify(current_user: CurrentUser = Depends(get_current_user)):
    """Confirm a session token is still good and return its user."""
    return success({
        "user": {
            "id": current_user.user_id,
            "username": current_user.username,
            "email": current_user.email,
            "firstName": current_user.first_name,
            "lastName": current_user.last_name,
            "isAdmin": current_user.is_admin,
        }
    })

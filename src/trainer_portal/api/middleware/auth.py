"""Authentication dependencies for FastAPI routes.

Bearer session tokens identify the caller; the database decides whether
the caller still exists, is active, and holds the admin role.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...db.repositories import User, UserRepository
from ...services.auth_service import (
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
    get_auth_service,
)
from ..dependencies import get_user_repository


# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """The authenticated caller, as stored in the database right now."""

    user_id: int
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: User) -> "CurrentUser":
        return cls(
            user_id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            is_admin=user.is_admin,
        )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
    users: UserRepository = Depends(get_user_repository),
) -> CurrentUser:
    """FastAPI dependency to get the current authenticated user.

    Raises:
        HTTPException (401): If no token is provided, the token is invalid
            or expired, or the user no longer exists or is inactive.
    """
    if credentials is None:
        raise _unauthorized("Access token required")

    try:
        payload = auth_service.verify_session_token(credentials.credentials)
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidTokenError as e:
        raise _unauthorized(str(e))

    user = users.get_active_by_id(payload["userId"])
    if user is None:
        raise _unauthorized("User not found or inactive")

    current_user = CurrentUser.from_user(user)
    request.state.user = current_user
    return current_user


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """FastAPI dependency to require the admin role.

    Raises:
        HTTPException (403): If user is not an admin.
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user

"""API middleware modules."""

from .auth import (
    CurrentUser,
    get_current_user,
    require_admin,
)
from .rate_limit import (
    limiter,
    get_rate_limit_key,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_LOGIN,
)
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "CurrentUser",
    "get_current_user",
    "require_admin",
    "limiter",
    "get_rate_limit_key",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_LOGIN",
    "SecurityHeadersMiddleware",
]

"""Rate limiting for FastAPI.

Uses slowapi. Every route gets the default limit through
SlowAPIMiddleware; the login endpoints carry a stricter one. Callers are
keyed by user id once authenticated, otherwise by IP address.
"""

from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config import get_settings


def get_rate_limit_key(request: Request) -> str:
    """Get the rate limit key for a request.

    Uses the user id if authenticated (set on request state by the auth
    dependency), otherwise falls back to the client's IP address.
    """
    user: Optional[object] = getattr(request.state, "user", None)
    if user is not None:
        user_id = getattr(user, "user_id", None)
        if user_id:
            return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


_settings = get_settings()

RATE_LIMIT_DEFAULT = _settings.rate_limit_default
RATE_LIMIT_LOGIN = _settings.rate_limit_login

limiter = Limiter(key_func=get_rate_limit_key, default_limits=[RATE_LIMIT_DEFAULT])

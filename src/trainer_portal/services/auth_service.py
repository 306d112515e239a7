"""Authentication service for JWT token management and password hashing.

Two token flavours are issued, told apart by the ``type`` claim:

- ``session``: 7-day bearer token used on every authenticated request
- ``login_link``: 30-day token embedded in the link an admin sends to a
  client; it is only accepted by the login-link exchange endpoint
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from ..config import get_settings

SESSION_TOKEN = "session"
LOGIN_LINK_TOKEN = "login_link"


class AuthServiceError(Exception):
    """Base exception for auth service errors."""

    pass


class TokenExpiredError(AuthServiceError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(AuthServiceError):
    """Raised when a token is invalid."""

    pass


class InvalidTokenTypeError(InvalidTokenError):
    """Raised when a valid token is presented where another flavour is expected."""

    pass


class AuthService:
    """Service for handling authentication operations.

    Provides JWT token creation/validation and password hashing.
    """

    def __init__(self) -> None:
        """Initialize auth service with settings."""
        settings = get_settings()
        self._secret_key = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._session_expire_days = settings.session_token_expire_days
        self._login_link_expire_days = settings.login_link_expire_days

    def _encode(self, claims: dict[str, Any], lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + lifetime}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def create_session_token(
        self,
        user_id: int,
        username: str,
        email: Optional[str] = None,
        is_admin: bool = False,
    ) -> str:
        """Create a session token.

        The isAdmin claim is informational for clients; the server re-checks
        the role column on every admin request.
        """
        return self._encode(
            {
                "userId": user_id,
                "username": username,
                "email": email,
                "isAdmin": is_admin,
                "type": SESSION_TOKEN,
            },
            timedelta(days=self._session_expire_days),
        )

    def create_login_link_token(self, user_id: int, username: str) -> str:
        """Create the long-lived token an admin hands to a client."""
        return self._encode(
            {"userId": user_id, "username": username, "type": LOGIN_LINK_TOKEN},
            timedelta(days=self._login_link_expire_days),
        )

    @property
    def login_link_expires_in(self) -> str:
        return f"{self._login_link_expire_days} days"

    def verify_token(self, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """Verify and decode a JWT token.

        Args:
            token: The JWT token string to verify.
            expected_type: Optional expected token type.

        Returns:
            Decoded token payload as a dictionary.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenTypeError: If the token has the wrong ``type`` claim.
            InvalidTokenError: If the token is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if expected_type and payload.get("type") != expected_type:
            raise InvalidTokenTypeError("Invalid token type")
        if not isinstance(payload.get("userId"), int):
            raise InvalidTokenError("Invalid token: missing user id")

        return payload

    def verify_session_token(self, token: str) -> dict[str, Any]:
        return self.verify_token(token, expected_type=SESSION_TOKEN)

    def verify_login_link_token(self, token: str) -> dict[str, Any]:
        return self.verify_token(token, expected_type=LOGIN_LINK_TOKEN)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
        """Verify a password against a bcrypt hash.

        Accounts created without a password (login-link only) never match.
        """
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get or create the auth service singleton."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service

"""Create or promote the admin account.

Used at startup (from ADMIN_USERNAME / ADMIN_PASSWORD) and by the
``create-admin`` CLI command.
"""

import logging
from typing import Optional, Tuple

from ..db.database import PortalDatabase
from ..db.repositories import User, UserRepository
from .auth_service import AuthService

logger = logging.getLogger(__name__)


def ensure_admin(
    db: PortalDatabase,
    username: str,
    password: str,
    email: Optional[str] = None,
    reset_password: bool = True,
) -> Tuple[User, bool]:
    """Make sure an active admin with this username exists.

    An existing account is promoted to admin and reactivated. Its password
    is only replaced when ``reset_password`` is set.

    Returns:
        (user, created)
    """
    users = UserRepository(db)
    existing = users.get_by_username(username)

    if existing is None:
        user, _ = users.create_user(
            username=username,
            password_hash=AuthService.hash_password(password),
            email=email,
            trainer_id=None,
            is_admin=True,
        )
        logger.info(f"Created admin user {username}")
        return user, True

    fields = {"is_admin": True, "is_active": True}
    if reset_password:
        fields["password_hash"] = AuthService.hash_password(password)
    if email:
        fields["email"] = email
    user = users.update(existing.id, fields)
    logger.info(f"Promoted existing user {username} to admin")
    return user, False


def bootstrap_admin_from_settings(db: PortalDatabase, settings) -> Optional[User]:
    """Create the configured admin on first start; leave an existing one alone."""
    if not settings.admin_password:
        return None
    existing = UserRepository(db).get_by_username(settings.admin_username)
    if existing is not None and existing.is_admin and existing.is_active:
        return existing
    user, _ = ensure_admin(
        db,
        settings.admin_username,
        settings.admin_password,
        email=settings.admin_email,
        reset_password=existing is None,
    )
    return user

"""Pytest configuration and fixtures."""

import os

# Settings are cached on first use, so the environment is fixed before
# anything from trainer_portal is imported.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-unit-testing-only-32chars")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("CHECKIN_REMINDERS_ENABLED", "false")

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from trainer_portal.config import get_settings
from trainer_portal.db.database import PortalDatabase, get_database
from trainer_portal.db.repositories import UserRepository, VideoRepository
from trainer_portal.services.analytics_service import AnalyticsService, get_analytics_service
from trainer_portal.services.auth_service import AuthService, get_auth_service
from trainer_portal.services.email_service import EmailService, get_email_service
from trainer_portal.services.storage_service import StorageService, get_storage_service

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
def db(tmp_path):
    """A fresh database in a temporary directory."""
    database = PortalDatabase(tmp_path / "portal.db", pool_size=3)
    yield database
    database.close()


@pytest.fixture(scope="session")
def test_password():
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return AuthService.hash_password(TEST_PASSWORD)


@pytest.fixture
def auth_service():
    return get_auth_service()


@pytest.fixture
def users(db):
    return UserRepository(db)


@pytest.fixture
def video_repo(db):
    return VideoRepository(db)


@pytest.fixture
def admin_user(users, password_hash):
    user, _ = users.create_user(
        username="coach",
        password_hash=password_hash,
        email="coach@example.com",
        first_name="Joshua",
        trainer_id=None,
        is_admin=True,
    )
    return user


@pytest.fixture
def client_user(users, password_hash):
    user, _ = users.create_user(
        username="mario",
        password_hash=password_hash,
        email="mario@example.com",
        first_name="Mario",
        last_name="Rossi",
    )
    return user


@pytest.fixture
def sample_video(video_repo):
    return video_repo.create(
        title="Squat basics",
        file_path="legs/squat.mp4",
        description="Bodyweight squat",
        duration=120,
        category="legs",
    )


def bearer(auth_service: AuthService, user) -> dict:
    """Authorization header for a user."""
    token = auth_service.create_session_token(user.id, user.username, user.email, user.is_admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for(auth_service):
    """Factory for Authorization headers of arbitrary users."""
    return lambda user: bearer(auth_service, user)


@pytest.fixture
def admin_headers(auth_service, admin_user):
    return bearer(auth_service, admin_user)


@pytest.fixture
def client_headers(auth_service, client_user):
    return bearer(auth_service, client_user)


@pytest.fixture
def s3_client():
    """Stand-in for the boto3 S3 client: presigns deterministic URLs."""
    client = MagicMock()
    client.generate_presigned_url.side_effect = (
        lambda operation, Params, ExpiresIn: f"https://signed.example/{Params['Key']}?op={operation}"
    )
    return client


@pytest.fixture
def storage_service(s3_client):
    return StorageService(settings=get_settings(), client=s3_client)


@pytest.fixture
def email_service():
    service = MagicMock(spec=EmailService)
    service.send_feedback_notification.return_value = True
    service.send_checkin_reminder.return_value = True
    return service


@pytest.fixture
def analytics_service():
    return MagicMock(spec=AnalyticsService)


@pytest.fixture
def client(db, storage_service, email_service, analytics_service):
    """TestClient wired to the temporary database and service doubles."""
    from trainer_portal.api.middleware.rate_limit import limiter
    from trainer_portal.main import app

    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_storage_service] = lambda: storage_service
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_analytics_service] = lambda: analytics_service
    limiter.enabled = False

    yield TestClient(app)

    app.dependency_overrides.clear()
    limiter.enabled = True
    limiter.reset()

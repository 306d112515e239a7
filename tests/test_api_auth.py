"""API tests for authentication and role checks."""

from datetime import datetime, timedelta, timezone

import jwt

from trainer_portal.api.middleware.rate_limit import limiter
from trainer_portal.config import get_settings


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client, users, client_user, test_password):
        response = client.post(
            "/api/auth/login", json={"username": "mario", "password": test_password}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Login successful"
        assert body["data"]["token"]
        assert body["data"]["user"]["username"] == "mario"
        assert body["data"]["user"]["isAdmin"] is False
        assert users.get_by_id(client_user.id).last_login is not None

    def test_wrong_password(self, client, client_user):
        response = client.post("/api/auth/login", json={"username": "mario", "password": "nope"})

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": {"code": "INVALID_CREDENTIALS", "message": "Invalid credentials"},
        }

    def test_inactive_user_cannot_login(self, client, users, client_user, test_password):
        users.soft_delete(client_user.id)

        response = client.post(
            "/api/auth/login", json={"username": "mario", "password": test_password}
        )

        assert response.status_code == 401

    def test_missing_field(self, client):
        response = client.post("/api/auth/login", json={"username": "mario"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "password" in error["message"]

    def test_login_is_rate_limited(self, client):
        """The sixth attempt within a minute is refused."""
        limiter.reset()
        limiter.enabled = True

        statuses = [
            client.post("/api/auth/login", json={"username": "ghost", "password": "x"}).status_code
            for _ in range(6)
        ]

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429
        last = client.post("/api/auth/login", json={"username": "ghost", "password": "x"})
        assert last.json()["error"]["code"] == "RATE_LIMITED"


class TestLoginLink:
    """Tests for POST /api/auth/login-link."""

    def test_exchange(self, client, auth_service, client_user):
        token = auth_service.create_login_link_token(client_user.id, client_user.username)

        response = client.post("/api/auth/login-link", json={"token": token})

        assert response.status_code == 200
        session = response.json()["data"]["token"]
        assert auth_service.verify_session_token(session)["userId"] == client_user.id

    def test_session_token_is_rejected(self, client, auth_service, client_user):
        session = auth_service.create_session_token(client_user.id, client_user.username)

        response = client.post("/api/auth/login-link", json={"token": session})

        assert response.status_code == 401
        assert response.json()["error"] == {"code": "INVALID_TOKEN", "message": "Invalid token type"}

    def test_expired_link(self, client, client_user):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        token = jwt.encode(
            {"userId": client_user.id, "type": "login_link", "exp": past},
            get_settings().jwt_secret_key,
            algorithm="HS256",
        )

        response = client.post("/api/auth/login-link", json={"token": token})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Login link has expired"

    def test_deleted_user(self, client, auth_service, users, client_user):
        token = auth_service.create_login_link_token(client_user.id, client_user.username)
        users.soft_delete(client_user.id)

        response = client.post("/api/auth/login-link", json={"token": token})

        assert response.status_code == 401


class TestVerify:
    """Tests for GET /api/auth/verify and the bearer dependency."""

    def test_verify(self, client, client_headers, client_user):
        response = client.get("/api/auth/verify", headers=client_headers)

        assert response.status_code == 200
        assert response.json()["data"]["user"] == client_user.to_public_dict()

    def test_missing_token(self, client):
        response = client.get("/api/auth/verify")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == {"code": "UNAUTHORIZED", "message": "Access token required"}

    def test_login_link_is_not_a_session(self, client, auth_service, client_user):
        link = auth_service.create_login_link_token(client_user.id, client_user.username)

        response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {link}"})

        assert response.status_code == 401

    def test_deleted_user_token(self, client, users, client_headers, client_user):
        users.soft_delete(client_user.id)

        response = client.get("/api/auth/verify", headers=client_headers)

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "User not found or inactive"


class TestAdminRole:
    """The admin role is read from the database, not the token."""

    def test_client_is_forbidden(self, client, client_headers):
        response = client.get("/api/admin/users", headers=client_headers)

        assert response.status_code == 403
        assert response.json()["error"] == {"code": "FORBIDDEN", "message": "Admin privileges required"}

    def test_forged_admin_claim(self, client, auth_service, client_user):
        token = auth_service.create_session_token(
            client_user.id, client_user.username, client_user.email, is_admin=True
        )

        response = client.get("/api/admin/users", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403

    def test_demoted_admin(self, client, users, admin_headers, admin_user):
        assert client.get("/api/admin/users", headers=admin_headers).status_code == 200

        users.update(admin_user.id, {"is_admin": False})

        assert client.get("/api/admin/users", headers=admin_headers).status_code == 403

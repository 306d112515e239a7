"""API tests for the admin endpoints: users, permissions, videos and training days."""

from trainer_portal.config import get_settings


class TestUsers:
    """Tests for /api/admin/users."""

    def test_create_user(self, client, admin_headers, auth_service):
        response = client.post(
            "/api/admin/users",
            headers=admin_headers,
            json={"username": "anna", "email": "anna@example.com", "firstName": "Anna", "trainerId": 2},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User created successfully"
        user = body["data"]["user"]
        assert user["username"] == "anna"
        assert user["first_name"] == "Anna"
        assert user["trainer_id"] == 2
        assert "password_hash" not in user
        token = body["data"]["loginToken"]
        assert body["data"]["loginUrl"] == f"{get_settings().frontend_url}/dashboard/{token}"
        assert auth_service.verify_login_link_token(token)["userId"] == user["id"]

    def test_duplicate_email(self, client, admin_headers, client_user):
        response = client.post(
            "/api/admin/users",
            headers=admin_headers,
            json={"username": "other", "email": client_user.email},
        )

        assert response.status_code == 409
        assert response.json()["error"] == {"code": "CONFLICT", "message": "Email already exists"}

    def test_duplicate_username(self, client, admin_headers, client_user):
        response = client.post("/api/admin/users", headers=admin_headers, json={"username": "mario"})

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Username already exists"

    def test_delete_then_recreate(self, client, admin_headers, client_user):
        deleted = client.delete(f"/api/admin/users/{client_user.id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert client.delete(f"/api/admin/users/{client_user.id}", headers=admin_headers).status_code == 404

        response = client.post("/api/admin/users", headers=admin_headers, json={"username": "mario"})

        assert response.status_code == 201
        assert response.json()["message"] == "User reactivated successfully"
        assert response.json()["data"]["user"]["id"] == client_user.id

    def test_list_users(self, client, admin_headers, client_user):
        response = client.get("/api/admin/users", headers=admin_headers)

        assert response.status_code == 200
        usernames = {u["username"] for u in response.json()["data"]}
        assert usernames == {"coach", "mario"}

    def test_update_user(self, client, admin_headers, client_user, test_password):
        response = client.put(
            f"/api/admin/users/{client_user.id}",
            headers=admin_headers,
            json={"lastName": "Bianchi", "isPaying": False, "password": "brand-new"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["last_name"] == "Bianchi"
        assert data["is_paying"] is False
        assert data["first_name"] == "Mario"

        login = client.post("/api/auth/login", json={"username": "mario", "password": "brand-new"})
        assert login.status_code == 200

    def test_update_nothing(self, client, admin_headers, client_user):
        response = client.put(f"/api/admin/users/{client_user.id}", headers=admin_headers, json={})

        assert response.status_code == 400

    def test_update_missing_user(self, client, admin_headers):
        response = client.put("/api/admin/users/999", headers=admin_headers, json={"firstName": "X"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_generate_link(self, client, admin_headers, client_user):
        response = client.post(f"/api/admin/users/{client_user.id}/generate-link", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["expiresIn"] == "30 days"
        assert client.post("/api/admin/users/999/generate-link", headers=admin_headers).status_code == 404

    def test_trainers(self, client, admin_headers):
        response = client.get("/api/admin/trainers", headers=admin_headers)

        assert [t["name"] for t in response.json()["data"]] == ["Joshua", "Denise"]


class TestPermissions:
    """Tests for granting and revoking video access."""

    def _url(self, user, video):
        return f"/api/admin/users/{user.id}/videos/{video.id}"

    def test_grant_revoke_regrant(self, client, admin_headers, client_user, sample_video):
        url = self._url(client_user, sample_video)

        granted = client.post(url, headers=admin_headers)
        assert granted.status_code == 200
        assert granted.json()["data"] == {
            "userId": client_user.id,
            "videoId": sample_video.id,
            "expiresAt": None,
        }

        again = client.post(url, headers=admin_headers)
        assert again.status_code == 400
        assert again.json()["error"]["message"] == "User already has access to this video"

        assert client.delete(url, headers=admin_headers).status_code == 200
        missing = client.delete(url, headers=admin_headers)
        assert missing.status_code == 404
        assert missing.json()["error"]["message"] == "Permission not found"

        restored = client.post(url, headers=admin_headers)
        assert restored.status_code == 200
        assert restored.json()["message"] == "Video access restored successfully"

    def test_grant_with_expiry(self, client, admin_headers, client_user, sample_video):
        response = client.post(
            self._url(client_user, sample_video),
            headers=admin_headers,
            json={"expiresAt": "2030-01-01T10:00:00Z"},
        )

        assert response.json()["data"]["expiresAt"] == "2030-01-01 10:00:00"

    def test_grant_unknown_video(self, client, admin_headers, client_user):
        response = client.post(f"/api/admin/users/{client_user.id}/videos/999", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Video not found"

    def test_grant_to_deleted_user(self, client, users, admin_headers, client_user, sample_video):
        users.soft_delete(client_user.id)

        response = client.post(self._url(client_user, sample_video), headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"

    def test_list_user_videos(self, client, admin_headers, client_user, sample_video):
        client.post(self._url(client_user, sample_video), headers=admin_headers)

        response = client.get(f"/api/admin/users/{client_user.id}/videos", headers=admin_headers)

        assert [v["id"] for v in response.json()["data"]] == [sample_video.id]


class TestVideoLibrary:
    """Tests for /api/admin/videos."""

    def test_upload_url(self, client, admin_headers):
        response = client.post(
            "/api/admin/videos/upload-url",
            headers=admin_headers,
            json={"fileName": "squat.mp4", "category": "legs"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["filePath"] == "legs/squat.mp4"
        assert data["uploadUrl"] == "https://signed.example/legs/squat.mp4?op=put_object"
        assert data["expiresIn"] == get_settings().upload_url_expire_seconds

    def test_create_requires_file_path(self, client, admin_headers):
        response = client.post("/api/admin/videos", headers=admin_headers, json={"title": "Squat"})

        assert response.status_code == 400

    def test_create_update_list(self, client, admin_headers):
        created = client.post(
            "/api/admin/videos",
            headers=admin_headers,
            json={"title": "Squat", "filePath": "legs/squat.mp4", "category": "legs", "duration": 90},
        )
        assert created.status_code == 201
        video_id = created.json()["data"]["id"]

        updated = client.put(
            f"/api/admin/videos/{video_id}",
            headers=admin_headers,
            json={"title": "Front squat", "category": "legs"},
        )
        assert updated.json()["data"]["title"] == "Front squat"

        listing = client.get("/api/admin/videos", headers=admin_headers).json()["data"]
        assert [(v["id"], v["user_count"]) for v in listing] == [(video_id, 0)]

    def test_preview(self, client, admin_headers, sample_video):
        response = client.get(f"/api/admin/videos/{sample_video.id}/preview", headers=admin_headers)

        assert response.json()["data"]["signedUrl"] == "https://signed.example/legs/squat.mp4?op=get_object"

    def test_delete_cuts_access(self, client, admin_headers, client_headers, client_user, sample_video):
        client.post(f"/api/admin/users/{client_user.id}/videos/{sample_video.id}", headers=admin_headers)
        assert client.get(f"/api/videos/{sample_video.id}", headers=client_headers).status_code == 200

        deleted = client.delete(f"/api/admin/videos/{sample_video.id}", headers=admin_headers)

        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"permissions_revoked": 1, "assignments_removed": 0}
        assert client.get(f"/api/videos/{sample_video.id}", headers=client_headers).status_code == 404
        assert client.delete(f"/api/admin/videos/{sample_video.id}", headers=admin_headers).status_code == 404


class TestTrainingDays:
    """Tests for /api/admin/users/{id}/training-days."""

    def _base(self, user):
        return f"/api/admin/users/{user.id}/training-days"

    def test_day_lifecycle(self, client, admin_headers, client_headers, client_user, sample_video):
        base = self._base(client_user)

        created = client.post(base, headers=admin_headers, json={"dayNumber": 1})
        assert created.status_code == 201
        day = created.json()["data"]
        assert day["day_name"] == "Giorno 1"

        duplicate = client.post(base, headers=admin_headers, json={"dayNumber": 1})
        assert duplicate.status_code == 409

        assigned = client.post(f"{base}/{day['id']}/videos/{sample_video.id}", headers=admin_headers)
        assert assigned.status_code == 200
        assert assigned.json()["data"]["permission"] == "created"

        mine = client.get("/api/videos/training-days", headers=client_headers).json()["data"]
        assert [v["id"] for v in mine[0]["videos"]] == [sample_video.id]
        assert mine[0]["videos"][0]["signedUrl"].startswith("https://signed.example/")

        removed = client.delete(f"{base}/{day['id']}/videos/{sample_video.id}", headers=admin_headers)
        assert removed.json()["data"] == {"permissionRevoked": True}
        assert client.get("/api/videos", headers=client_headers).json()["data"] == []

        again = client.delete(f"{base}/{day['id']}/videos/{sample_video.id}", headers=admin_headers)
        assert again.status_code == 404
        assert again.json()["error"]["message"] == "Video not assigned to this training day"

    def test_assign_to_missing_day(self, client, admin_headers, client_user, sample_video):
        response = client.post(
            f"{self._base(client_user)}/999/videos/{sample_video.id}", headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Training day not found"

    def test_create_day_for_deleted_user(self, client, users, admin_headers, client_user):
        users.soft_delete(client_user.id)

        response = client.post(self._base(client_user), headers=admin_headers, json={"dayNumber": 1})

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"

    def test_rename_reorder_delete(self, client, admin_headers, client_user, video_repo, sample_video):
        base = self._base(client_user)
        other = video_repo.create(title="Lunges", file_path="legs/lunges.mp4", category="legs")
        day_id = client.post(base, headers=admin_headers, json={"dayNumber": 2}).json()["data"]["id"]
        client.post(f"{base}/{day_id}/videos/{sample_video.id}", headers=admin_headers)
        client.post(f"{base}/{day_id}/videos/{other.id}", headers=admin_headers)

        renamed = client.put(f"{base}/{day_id}", headers=admin_headers, json={"dayName": "Legs"})
        assert renamed.json()["data"]["day_name"] == "Legs"

        reordered = client.put(
            f"{base}/{day_id}/videos/reorder",
            headers=admin_headers,
            json={"videoOrders": [{"videoId": sample_video.id, "orderIndex": 1}, {"videoId": other.id, "orderIndex": 0}]},
        )
        assert reordered.json()["data"] == {"updated": 2}
        listing = client.get(base, headers=admin_headers).json()["data"]
        assert [v["id"] for v in listing[0]["videos"]] == [other.id, sample_video.id]

        deleted = client.delete(f"{base}/{day_id}", headers=admin_headers)
        assert deleted.json()["data"] == {"revokedVideoIds": sorted([sample_video.id, other.id])}
        assert client.get(base, headers=admin_headers).json()["data"] == []

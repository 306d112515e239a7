"""API tests for PDF training plans."""

import pytest

from trainer_portal.config import get_settings

PDF_BYTES = b"%PDF-1.4\n% training plan\n%%EOF\n"


def _upload(client, headers, user_id, content=PDF_BYTES, name="plan.pdf", mime="application/pdf", **form):
    return client.post(
        f"/api/pdf/admin/upload/{user_id}",
        headers=headers,
        files={"pdf": (name, content, mime)},
        data={key: str(value) for key, value in form.items()},
    )


class TestUpload:
    """Tests for POST /api/pdf/admin/upload/{user_id}."""

    def test_upload_then_replace(self, client, admin_headers, client_user):
        first = _upload(client, admin_headers, client_user.id, durationMonths=1, durationDays=10)

        assert first.status_code == 201
        data = first.json()["data"]
        assert data["original_name"] == "plan.pdf"
        assert data["file_size"] == len(PDF_BYTES)
        assert data["duration_months"] == 1
        assert data["duration_days"] == 10
        assert data["expiration_date"] is not None
        assert "file_data" not in data

        second = _upload(client, admin_headers, client_user.id, name="plan-v2.pdf")

        assert second.status_code == 200
        assert second.json()["message"] == "PDF updated successfully"
        assert second.json()["data"]["id"] == data["id"]
        assert second.json()["data"]["duration_months"] == 2

    def test_rejects_non_pdf(self, client, admin_headers, client_user):
        response = _upload(client, admin_headers, client_user.id, name="plan.txt", mime="text/plain")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Only PDF files are allowed"

    def test_rejects_large_file(self, client, admin_headers, client_user, monkeypatch):
        monkeypatch.setattr(get_settings(), "pdf_max_size_bytes", 10)

        response = _upload(client, admin_headers, client_user.id)

        assert response.status_code == 413
        assert response.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"

    def test_unknown_user(self, client, admin_headers):
        assert _upload(client, admin_headers, 999).status_code == 404

    def test_deleted_user(self, client, users, admin_headers, client_user):
        users.soft_delete(client_user.id)

        response = _upload(client, admin_headers, client_user.id)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"

    def test_client_cannot_upload(self, client, client_headers, client_user):
        assert _upload(client, client_headers, client_user.id).status_code == 403


class TestDownload:
    """Tests for GET /api/pdf/download."""

    def test_own_plan(self, client, admin_headers, client_headers, client_user):
        _upload(client, admin_headers, client_user.id, name="scheda maggio.pdf")

        response = client.get("/api/pdf/download", headers=client_headers)

        assert response.status_code == 200
        assert response.content == PDF_BYTES
        assert response.headers["content-type"] == "application/pdf"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="scheda maggio.pdf"')
        assert "filename*=UTF-8''scheda%20maggio.pdf" in disposition

    def test_someone_elses_plan(self, client, users, admin_headers, client_headers, headers_for, password_hash):
        other, _ = users.create_user(username="luigi", password_hash=password_hash)
        _upload(client, admin_headers, other.id)

        response = client.get(f"/api/pdf/download?userId={other.id}", headers=client_headers)

        assert response.status_code == 403
        assert client.get("/api/pdf/download", headers=headers_for(other)).status_code == 200

    def test_admin_downloads_for_user(self, client, admin_headers, client_user):
        _upload(client, admin_headers, client_user.id)

        response = client.get(f"/api/pdf/download?userId={client_user.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.content == PDF_BYTES

    def test_no_plan(self, client, client_headers):
        response = client.get("/api/pdf/download", headers=client_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "PDF not found"


class TestManage:
    """Tests for extending, reading and deleting plans."""

    @pytest.mark.parametrize(
        "body",
        [{}, {"additionalMonths": 0, "additionalDays": 0}, {"additionalMonths": -1, "additionalDays": 5}],
    )
    def test_extend_needs_positive_amount(self, client, admin_headers, client_user, body):
        _upload(client, admin_headers, client_user.id)

        response = client.put(f"/api/pdf/admin/extend/{client_user.id}", headers=admin_headers, json=body)

        assert response.status_code == 400

    def test_extend(self, client, admin_headers, client_user):
        uploaded = _upload(client, admin_headers, client_user.id, durationMonths=2).json()["data"]

        response = client.put(
            f"/api/pdf/admin/extend/{client_user.id}",
            headers=admin_headers,
            json={"additionalMonths": 1},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["duration_months"] == 3
        assert data["expiration_date"] > uploaded["expiration_date"]
        assert data["updated_at"] == uploaded["updated_at"]

    def test_extend_missing_plan(self, client, admin_headers, client_user):
        response = client.put(
            f"/api/pdf/admin/extend/{client_user.id}",
            headers=admin_headers,
            json={"additionalDays": 7},
        )

        assert response.status_code == 404

    def test_my_pdf(self, client, admin_headers, client_headers, client_user):
        assert client.get("/api/pdf/my-pdf", headers=client_headers).json()["data"] is None

        _upload(client, admin_headers, client_user.id)

        data = client.get("/api/pdf/my-pdf", headers=client_headers).json()["data"]
        assert data["original_name"] == "plan.pdf"
        admin_view = client.get(f"/api/pdf/admin/user/{client_user.id}", headers=admin_headers)
        assert admin_view.json()["data"] == data

    def test_delete(self, client, admin_headers, client_headers, client_user):
        _upload(client, admin_headers, client_user.id)

        assert client.delete(f"/api/pdf/admin/delete/{client_user.id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/pdf/admin/delete/{client_user.id}", headers=admin_headers).status_code == 404
        assert client.get("/api/pdf/my-pdf", headers=client_headers).json()["data"] is None

"""API tests for client check-ins."""

import pytest

from trainer_portal.db.schema import DEFAULT_TRAINER_NAME, DEFAULT_TRAINERS

CHECKIN = {
    "firstName": "Mario",
    "lastName": "Rossi",
    "email": "mario@example.com",
    "energyLevel": "high",
    "workoutsCompleted": "almost_all",
    "mealPlanFollowed": "mostly",
    "sleepQuality": "good",
    "physicalDiscomfort": "minor",
    "discomfortDetails": "Left knee after lunges",
    "motivationLevel": "very_high",
    "weeklyHighlights": "First unassisted pull-up",
    "currentWeight": 78.4,
}


def _backdate_pdf(db, user_id, days):
    with db.connection() as conn:
        conn.execute(
            "UPDATE user_pdf_files SET updated_at = datetime('now', ?) WHERE user_id = ?",
            (f"-{days} days", user_id),
        )


class TestShouldShow:
    """Tests for GET /api/feedback/should-show."""

    def test_no_pdf(self, client, client_headers):
        response = client.get("/api/feedback/should-show", headers=client_headers)

        assert response.json()["data"] == {"shouldShow": False, "reason": "no_pdf"}

    def test_fresh_pdf(self, client, admin_headers, client_headers, client_user):
        client.post(
            f"/api/pdf/admin/upload/{client_user.id}",
            headers=admin_headers,
            files={"pdf": ("plan.pdf", b"%PDF-1.4", "application/pdf")},
        )

        data = client.get("/api/feedback/should-show", headers=client_headers).json()["data"]

        assert data["shouldShow"] is False
        assert data["reason"] == "too_soon"
        assert "nextAvailableAt" in data

    def test_settled_pdf_then_checkin(self, client, db, admin_headers, client_headers, client_user):
        client.post(
            f"/api/pdf/admin/upload/{client_user.id}",
            headers=admin_headers,
            files={"pdf": ("plan.pdf", b"%PDF-1.4", "application/pdf")},
        )
        _backdate_pdf(db, client_user.id, 8)

        assert client.get("/api/feedback/should-show", headers=client_headers).json()["data"]["shouldShow"] is True

        client.post("/api/feedback", headers=client_headers, json=CHECKIN)

        data = client.get("/api/feedback/should-show", headers=client_headers).json()["data"]
        assert data["shouldShow"] is False
        assert data["reason"] == "too_soon_since_last"


class TestSubmit:
    """Tests for POST /api/feedback."""

    def test_submit_notifies_trainer(self, client, client_headers, client_user, email_service):
        response = client.post("/api/feedback", headers=client_headers, json=CHECKIN)

        assert response.status_code == 201
        feedback = response.json()["data"]
        assert feedback["user_id"] == client_user.id
        assert feedback["energy_level"] == "high"
        assert feedback["current_weight"] == 78.4
        assert feedback["pdf_change_date"] is None

        email_service.send_feedback_notification.assert_called_once()
        args, kwargs = email_service.send_feedback_notification.call_args
        assert args[0]["id"] == feedback["id"]
        assert kwargs["trainer_name"] == "Joshua"

    def test_notification_names_assigned_trainer(self, client, client_headers, client_user, users, email_service):
        users.update(client_user.id, {"trainer_id": 2})

        client.post("/api/feedback", headers=client_headers, json=CHECKIN)

        assert email_service.send_feedback_notification.call_args.kwargs["trainer_name"] == "Denise"

    def test_unassigned_client_falls_back_to_default_trainer(
        self, client, client_headers, client_user, users, email_service
    ):
        users.update(client_user.id, {"trainer_id": None})

        response = client.post("/api/feedback", headers=client_headers, json=CHECKIN)

        assert response.status_code == 201
        trainer_name = email_service.send_feedback_notification.call_args.kwargs["trainer_name"]
        assert trainer_name == DEFAULT_TRAINER_NAME == DEFAULT_TRAINERS[0][1]

    def test_notification_failure_does_not_fail_submit(self, client, client_headers, email_service):
        email_service.send_feedback_notification.side_effect = RuntimeError("smtp down")

        response = client.post("/api/feedback", headers=client_headers, json=CHECKIN)

        assert response.status_code == 201

    @pytest.mark.parametrize(
        "field, value",
        [
            ("energyLevel", "extreme"),
            ("sleepQuality", "great"),
            ("email", "not-an-email"),
            ("currentWeight", -3),
            ("firstName", ""),
        ],
    )
    def test_invalid_checkin(self, client, client_headers, field, value):
        response = client.post("/api/feedback", headers=client_headers, json={**CHECKIN, field: value})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_my_feedbacks(self, client, client_headers):
        client.post("/api/feedback", headers=client_headers, json=CHECKIN)
        client.post("/api/feedback", headers=client_headers, json={**CHECKIN, "energyLevel": "low"})

        data = client.get("/api/feedback/my-feedbacks", headers=client_headers).json()["data"]

        assert [f["energy_level"] for f in data] == ["low", "high"]


class TestAdminInbox:
    """Tests for the admin feedback endpoints."""

    def test_unread_and_mark_seen(self, client, admin_headers, client_headers):
        client.post("/api/feedback", headers=client_headers, json=CHECKIN)

        unread = client.get("/api/feedback/admin/unread-count", headers=admin_headers).json()["data"]
        assert unread == {"unreadCount": 1, "lastSeenAt": None}

        seen = client.post("/api/feedback/admin/mark-seen", headers=admin_headers)
        assert seen.status_code == 200
        last_seen = seen.json()["data"]["lastSeenAt"]

        unread = client.get("/api/feedback/admin/unread-count", headers=admin_headers).json()["data"]
        assert unread == {"unreadCount": 0, "lastSeenAt": last_seen}

    def test_per_trainer_views(self, client, users, admin_headers, client_headers, headers_for):
        denise_client, _ = users.create_user(username="giulia", trainer_id=2)
        client.post("/api/feedback", headers=client_headers, json=CHECKIN)
        client.post("/api/feedback", headers=headers_for(denise_client), json=CHECKIN)

        everyone = client.get("/api/feedback/admin/all", headers=admin_headers).json()["data"]
        denise = client.get("/api/feedback/admin/all?trainerId=2", headers=admin_headers).json()["data"]

        assert len(everyone) == 2
        assert [(f["username"], f["trainer_name"]) for f in denise] == [("giulia", "Denise")]

        client.post("/api/feedback/admin/mark-seen", headers=admin_headers, json={"trainerId": 2})
        counts = {
            trainer: client.get(
                f"/api/feedback/admin/unread-count{suffix}", headers=admin_headers
            ).json()["data"]["unreadCount"]
            for trainer, suffix in (("all", ""), ("denise", "?trainerId=2"))
        }
        assert counts == {"all": 2, "denise": 0}

    def test_user_history_and_delete(self, client, admin_headers, client_headers, client_user):
        feedback_id = client.post("/api/feedback", headers=client_headers, json=CHECKIN).json()["data"]["id"]

        history = client.get(f"/api/feedback/admin/user/{client_user.id}", headers=admin_headers)
        assert [f["id"] for f in history.json()["data"]] == [feedback_id]

        assert client.delete(f"/api/feedback/{feedback_id}", headers=client_headers).status_code == 403
        assert client.delete(f"/api/feedback/{feedback_id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/feedback/{feedback_id}", headers=admin_headers).status_code == 404

"""Tests for VideoRepository and the permission rules."""

from datetime import timedelta

from trainer_portal.db.repositories import TrainingDayRepository
from trainer_portal.db.repositories.video_repository import (
    GRANT_ALREADY_ACTIVE,
    GRANT_CREATED,
    GRANT_REACTIVATED,
)
from trainer_portal.utils.dates import to_db_timestamp, utcnow


def _permission(db, user_id, video_id):
    with db.connection() as conn:
        return conn.execute(
            "SELECT * FROM user_video_permissions WHERE user_id = ? AND video_id = ?",
            (user_id, video_id),
        ).fetchone()


class TestGrantRevoke:
    """Tests for granting and revoking access."""

    def test_grant_then_regrant(self, db, video_repo, admin_user, client_user, sample_video):
        """Revoke then grant again reuses the same permission row."""
        assert video_repo.grant(client_user.id, sample_video.id, admin_user.id) == GRANT_CREATED
        first_id = _permission(db, client_user.id, sample_video.id)["id"]

        assert video_repo.grant(client_user.id, sample_video.id, admin_user.id) == GRANT_ALREADY_ACTIVE

        assert video_repo.revoke(client_user.id, sample_video.id) is True
        assert video_repo.get_accessible(client_user.id, sample_video.id) is None

        assert video_repo.grant(client_user.id, sample_video.id, admin_user.id) == GRANT_REACTIVATED
        row = _permission(db, client_user.id, sample_video.id)
        assert row["id"] == first_id
        assert row["is_active"] == 1

    def test_revoke_without_permission(self, video_repo, client_user, sample_video):
        assert video_repo.revoke(client_user.id, sample_video.id) is False

    def test_revoke_removes_training_day_assignments(self, db, video_repo, client_user, sample_video):
        days = TrainingDayRepository(db)
        day = days.create(client_user.id, 1)
        days.add_video(client_user.id, day.id, sample_video.id, added_by=None)

        assert video_repo.revoke(client_user.id, sample_video.id) is True
        assert days.get(client_user.id, day.id).videos == []

    def test_expired_permission_is_not_accessible(self, video_repo, client_user, sample_video):
        expired = to_db_timestamp(utcnow() - timedelta(days=1))
        video_repo.grant(client_user.id, sample_video.id, None, expires_at=expired)

        assert video_repo.list_accessible(client_user.id) == []
        assert video_repo.get_accessible(client_user.id, sample_video.id) is None

    def test_future_expiry_is_accessible(self, video_repo, client_user, sample_video):
        later = to_db_timestamp(utcnow() + timedelta(days=30))
        video_repo.grant(client_user.id, sample_video.id, None, expires_at=later)

        assert video_repo.get_accessible(client_user.id, sample_video.id).id == sample_video.id

    def test_list_user_permissions(self, video_repo, admin_user, client_user, sample_video):
        video_repo.grant(client_user.id, sample_video.id, admin_user.id)

        permissions = video_repo.list_user_permissions(client_user.id)

        assert len(permissions) == 1
        assert permissions[0]["title"] == "Squat basics"
        assert permissions[0]["granted_by"] == admin_user.id


class TestVideoLibrary:
    """Tests for the admin video library."""

    def test_soft_delete_cascades(self, db, video_repo, client_user, sample_video):
        days = TrainingDayRepository(db)
        day = days.create(client_user.id, 1)
        days.add_video(client_user.id, day.id, sample_video.id, added_by=None)

        changes = video_repo.soft_delete(sample_video.id)

        assert changes == {"permissions_revoked": 1, "assignments_removed": 1}
        assert video_repo.get(sample_video.id) is None
        assert video_repo.get(sample_video.id, active_only=False).is_active is False
        assert _permission(db, client_user.id, sample_video.id)["is_active"] == 0
        assert video_repo.soft_delete(sample_video.id) == {}

    def test_user_count(self, video_repo, users, client_user, sample_video):
        other, _ = users.create_user(username="luca")
        video_repo.grant(client_user.id, sample_video.id, None)
        video_repo.grant(other.id, sample_video.id, None)
        video_repo.revoke(other.id, sample_video.id)

        listing = video_repo.list_with_user_count()

        assert listing[0]["id"] == sample_video.id
        assert listing[0]["user_count"] == 1

    def test_update(self, video_repo, sample_video):
        updated = video_repo.update(sample_video.id, title="Goblet squat", category="legs")

        assert updated.title == "Goblet squat"
        assert updated.file_path == "legs/squat.mp4"
        assert updated.description is None

    def test_categories(self, video_repo, client_user, sample_video):
        press = video_repo.create(title="Press", file_path="push/press.mp4", category="push")
        video_repo.create(title="Row", file_path="pull/row.mp4", category="pull")
        video_repo.grant(client_user.id, sample_video.id, None)
        video_repo.grant(client_user.id, press.id, None)

        assert video_repo.list_accessible_categories(client_user.id) == ["legs", "push"]
        assert [v.title for v in video_repo.list_accessible(client_user.id, category="push")] == ["Press"]

    def test_log_access(self, db, video_repo, client_user, sample_video):
        video_repo.log_access(client_user.id, sample_video.id, "127.0.0.1", "pytest")

        with db.connection() as conn:
            row = conn.execute("SELECT * FROM access_logs").fetchone()
        assert row["user_id"] == client_user.id
        assert row["user_agent"] == "pytest"

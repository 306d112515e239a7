"""Tests for the check-in reminder job and its scheduler."""

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from trainer_portal.db.repositories import PdfRepository
from trainer_portal.services.email_service import EmailService
from trainer_portal.services.reminder_scheduler import JOB_ID, ReminderScheduler
from trainer_portal.services.reminder_service import ReminderService


@pytest.fixture
def due_client(db, admin_user, client_user):
    """A client whose plan is old enough and who never checked in."""
    PdfRepository(db).upsert(client_user.id, "plan.pdf", b"%PDF-1.4", admin_user.id)
    with db.connection() as conn:
        conn.execute(
            "UPDATE user_pdf_files SET updated_at = datetime('now', '-10 days') WHERE user_id = ?",
            (client_user.id,),
        )
    return client_user


class TestReminderService:
    """Tests for ReminderService.run."""

    def test_sends_to_due_clients(self, db, due_client):
        email = MagicMock(spec=EmailService)
        email.send_checkin_reminder.return_value = True

        report = ReminderService(db, email_service=email).run()

        email.send_checkin_reminder.assert_called_once_with("mario@example.com", "Mario")
        assert report.to_dict() == {"candidates": 1, "sent": 1, "failed": 0, "skipped": 0}

    def test_dry_run_sends_nothing(self, db, due_client):
        email = MagicMock(spec=EmailService)

        report = ReminderService(db, email_service=email).run(dry_run=True)

        email.send_checkin_reminder.assert_not_called()
        assert report.skipped == [due_client.id]

    def test_failed_send_is_reported(self, db, due_client):
        email = MagicMock(spec=EmailService)
        email.send_checkin_reminder.return_value = False

        report = ReminderService(db, email_service=email).run()

        assert report.failed == [due_client.id]

    def test_client_without_address_is_skipped(self, db, users, due_client):
        users.update(due_client.id, {"email": None})
        email = MagicMock(spec=EmailService)

        report = ReminderService(db, email_service=email).run()

        email.send_checkin_reminder.assert_not_called()
        assert report.skipped == [due_client.id]


class TestReminderScheduler:
    """Tests for the APScheduler wrapper."""

    @pytest.fixture
    def settings(self):
        settings = MagicMock()
        settings.checkin_reminders_enabled = True
        settings.checkin_reminder_hour = 9
        return settings

    def test_disabled_does_not_start(self, db, settings):
        settings.checkin_reminders_enabled = False
        scheduler = ReminderScheduler(db, reminder_service=MagicMock())

        with patch("trainer_portal.services.reminder_scheduler.get_settings", return_value=settings):
            scheduler.start()

        assert scheduler.is_running is False
        assert scheduler.get_next_run_time() is None

    def test_start_and_stop(self, db, settings):
        async def scenario():
            scheduler = ReminderScheduler(db, reminder_service=MagicMock())
            with patch("trainer_portal.services.reminder_scheduler.get_settings", return_value=settings):
                scheduler.start()
            try:
                assert scheduler.is_running is True
                job = scheduler.scheduler.get_job(JOB_ID)
                assert job is not None
                assert scheduler.get_next_run_time().hour == 9
            finally:
                scheduler.stop()
            assert scheduler.is_running is False

        asyncio.run(scenario())

    def test_job_failure_is_contained(self, db):
        service = MagicMock()
        service.run.side_effect = RuntimeError("smtp down")
        scheduler = ReminderScheduler(db, reminder_service=service)

        asyncio.run(scheduler._run_reminders())

        assert scheduler.last_report is None

    def test_job_keeps_last_report(self, db):
        service = MagicMock()
        service.run.return_value = "report"
        scheduler = ReminderScheduler(db, reminder_service=service)

        asyncio.run(scheduler._run_reminders())

        assert scheduler.last_report == "report"

"""
Email Service

Sends the admin a summary of every new client check-in, and sends
clients their periodic check-in reminder. Uses SMTP; when email is
disabled the message is only logged.
"""

import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Dict, Optional

from ..config import Settings, get_settings
from ..db.schema import DEFAULT_TRAINER_NAME

logger = logging.getLogger(__name__)

# Italian labels for the enumerated check-in answers
LABELS: Dict[str, Dict[str, str]] = {
    "energy_level": {"high": "Alta", "medium": "Media", "low": "Bassa"},
    "workouts_completed": {
        "all": "Tutti completati",
        "almost_all": "Quasi tutti",
        "few_or_none": "Pochi o nessuno",
    },
    "meal_plan_followed": {
        "completely": "Completamente",
        "mostly": "In gran parte",
        "sometimes": "Solo a volte",
        "no": "No",
    },
    "sleep_quality": {"excellent": "Ottima", "good": "Buona", "fair": "Così così", "poor": "Scarsa"},
    "physical_discomfort": {
        "none": "Nessuno",
        "minor": "Fastidi lievi",
        "significant": "Dolore significativo",
    },
    "motivation_level": {"very_high": "Molto alta", "good": "Buona", "medium": "Media", "low": "Bassa"},
}

FIELD_TITLES = (
    ("energy_level", "Energia"),
    ("workouts_completed", "Allenamenti"),
    ("meal_plan_followed", "Alimentazione"),
    ("sleep_quality", "Sonno"),
    ("physical_discomfort", "Dolori/Fastidi"),
    ("motivation_level", "Motivazione"),
)

GOOD = "#10b981"
FAIR = "#84cc16"
WARN = "#f59e0b"
BAD = "#ef4444"
NEUTRAL = "#6b7280"

STATUS_COLORS: Dict[str, Dict[str, str]] = {
    "energy_level": {"high": GOOD, "medium": WARN, "low": BAD},
    "workouts_completed": {"all": GOOD, "almost_all": WARN, "few_or_none": BAD},
    "meal_plan_followed": {"completely": GOOD, "mostly": FAIR, "sometimes": WARN, "no": BAD},
    "sleep_quality": {"excellent": GOOD, "good": FAIR, "fair": WARN, "poor": BAD},
    "physical_discomfort": {"none": GOOD, "minor": WARN, "significant": BAD},
    "motivation_level": {"very_high": GOOD, "good": FAIR, "medium": WARN, "low": BAD},
}


def label_for(field: str, value: Optional[str]) -> str:
    if value is None:
        return "-"
    return LABELS.get(field, {}).get(value, value)


class EmailService:
    """Service for sending emails"""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.smtp_server = settings.smtp_server
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_email = settings.from_email
        self.from_name = settings.from_name
        self.notification_email = settings.notification_email
        self.dashboard_url = settings.admin_dashboard_url
        self.enabled = settings.email_enabled

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Returns True if sent successfully, False otherwise.
        """
        if not self.enabled:
            logger.info(f"Email disabled, would send to {to_email}: {subject}")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, "plain", "utf-8"))
            msg.attach(MIMEText(html_content, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as server:
                if self.smtp_username and self.smtp_password:
                    server.starttls()
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return False

    def send_feedback_notification(self, feedback: Dict[str, Any], trainer_name: str = DEFAULT_TRAINER_NAME) -> bool:
        """Tell the admin a client has submitted a check-in."""
        if not self.notification_email:
            logger.info("Notification email not configured, skipping feedback notification")
            return False

        first = feedback.get("first_name") or ""
        last = feedback.get("last_name") or ""
        subject = f"[PT {trainer_name}] Nuovo Check da {first} {last}".strip()

        rows = []
        text_lines = [f"Nuovo check da {first} {last} ({feedback.get('email')})", ""]
        for field, title in FIELD_TITLES:
            value = feedback.get(field)
            label = label_for(field, value)
            color = STATUS_COLORS.get(field, {}).get(value, NEUTRAL)
            rows.append(
                f'<tr><td style="padding:10px 16px;color:#6b7280">{title}</td>'
                f'<td style="padding:10px 16px;text-align:right">'
                f'<span style="background:{color};color:white;padding:4px 12px;border-radius:20px">'
                f"{escape(label)}</span></td></tr>"
            )
            text_lines.append(f"{title}: {label}")

        if feedback.get("current_weight"):
            rows.append(
                '<tr><td style="padding:10px 16px;color:#6b7280">Peso attuale</td>'
                f'<td style="padding:10px 16px;text-align:right">{feedback["current_weight"]} kg</td></tr>'
            )
            text_lines.append(f"Peso attuale: {feedback['current_weight']} kg")

        extra = ""
        if feedback.get("discomfort_details"):
            extra += (
                "<h3>Dettagli dolori/fastidi</h3>"
                f"<p>{escape(feedback['discomfort_details'])}</p>"
            )
            text_lines += ["", f"Dettagli dolori/fastidi: {feedback['discomfort_details']}"]
        if feedback.get("weekly_highlights"):
            extra += (
                "<h3>Cosa è andato bene questa settimana</h3>"
                f"<p>{escape(feedback['weekly_highlights'])}</p>"
            )
            text_lines += ["", f"Cosa è andato bene: {feedback['weekly_highlights']}"]

        html = f"""
        <html>
          <body style="font-family: Arial, sans-serif; background:#f9fafb">
            <div style="max-width:600px;margin:0 auto;padding:20px;background:white">
              <h1>Nuovo Check Settimanale</h1>
              <p style="color:#9ca3af">{datetime.now().strftime("%d/%m/%Y")}</p>
              <h2>{escape(first)} {escape(last)}</h2>
              <p>{escape(feedback.get("email") or "")}</p>
              <table style="width:100%;border-collapse:collapse">{"".join(rows)}</table>
              {extra}
              <p><a href="{self.dashboard_url}">Vai alla Dashboard Admin</a></p>
            </div>
          </body>
        </html>
        """
        return self.send_email(self.notification_email, subject, html, "\n".join(text_lines))

    def send_checkin_reminder(self, to_email: str, name: str) -> bool:
        """Nudge a client to fill in their periodic check-in."""
        subject = f"{name}, è il momento del tuo check settimanale!"
        html = f"""
        <html>
          <body style="font-family: Arial, sans-serif; background:#f9fafb">
            <div style="max-width:600px;margin:0 auto;padding:20px;background:white">
              <h1>Ciao {escape(name)}!</h1>
              <p>È passata un'altra settimana e vorrei sapere come sta andando il tuo percorso di allenamento.</p>
              <p>Accedi alla tua area personale e compila il check: bastano due minuti.</p>
            </div>
          </body>
        </html>
        """
        text = (
            f"Ciao {name}!\n\n"
            "È passata un'altra settimana: accedi alla tua area personale e compila il check."
        )
        return self.send_email(to_email, subject, html, text)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service

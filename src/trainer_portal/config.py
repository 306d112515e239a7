"""Configuration settings for the Trainer Portal API."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings


# __file__ = src/trainer_portal/config.py
PACKAGE_ROOT = Path(__file__).parent  # src/trainer_portal/
PROJECT_ROOT = PACKAGE_ROOT.parent.parent  # repository root

DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    debug: bool = False
    environment: str = "development"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "https://www.esercizifacili.com",
        "https://esercizifacili.com",
    ]

    # Database
    database_path: Path | None = None
    db_pool_size: int = 5
    db_timeout_seconds: float = 30.0

    # JWT
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    session_token_expire_days: int = 7
    login_link_expire_days: int = 30

    # Frontend (login links point here)
    frontend_url: str = "http://localhost:5173"
    site_url: str = "https://www.esercizifacili.com"

    # Bootstrap admin, created on first start if missing
    admin_username: str = "admin"
    admin_password: str = ""
    admin_email: str | None = None

    # Rate limiting
    rate_limit_default: str = "100/15minutes"
    rate_limit_login: str = "5/minute"

    # Security headers
    security_enable_hsts: bool = False

    # Object storage (Cloudflare R2, S3 compatible)
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = ""
    r2_endpoint_url: str | None = None
    signed_url_expire_seconds: int = 3600
    upload_url_expire_seconds: int = 1800

    # Email
    email_enabled: bool = False
    smtp_server: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    from_email: str = "noreply@esercizifacili.com"
    from_name: str = "EserciziFacili"
    notification_email: str | None = None
    admin_dashboard_url: str = "https://www.esercizifacili.com/admin"

    # Analytics (Vercel)
    vercel_token: str = ""
    vercel_project_id: str = ""
    vercel_team_id: str = ""
    analytics_timeout_seconds: float = 15.0

    # PDF uploads
    pdf_max_size_bytes: int = 10 * 1024 * 1024

    # Check-in reminders
    checkin_reminders_enabled: bool = False
    checkin_reminder_hour: int = 9

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def storage_configured(self) -> bool:
        return bool(
            self.r2_access_key_id
            and self.r2_secret_access_key
            and self.r2_bucket_name
            and (self.r2_endpoint_url or self.r2_account_id)
        )

    @property
    def analytics_configured(self) -> bool:
        return bool(self.vercel_token and self.vercel_project_id)

    def model_post_init(self, __context) -> None:
        """Set default database path after initialization."""
        if self.database_path is None:
            self.database_path = PROJECT_ROOT / "data" / "trainer_portal.db"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

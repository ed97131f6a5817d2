"""GMB Dashboard: Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Database ──
    database_url: str = ""

    # ── GMB Data API ──
    gmb_api_url: str = "http://multipliersolutions.in/gmbhospitals/gmb_api/api.php"
    gmb_timeout_seconds: float = 30.0
    gmb_max_retries: int = 3
    review_fetch_limit: int = 3000

    # ── SMTP ──
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@gmb-dashboard.local"

    # ── Auth ──
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 480
    otp_ttl_minutes: int = 10
    reset_token_ttl_minutes: int = 60
    admin_bypass_email: str = "admin@manipal.com"
    admin_bypass_password: str = "admin123"
    super_admin_email: str = "harsh@multipliersolutions.com"
    allow_anonymous_access: bool = False

    # ── App ──
    api_version: str = "1.2.0"
    frontend_url: str = "http://localhost:8080"
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    monthly_report_day: int = 2  # Day of month the report goes out
    monthly_report_hour: int = 6

    @property
    def effective_database_url(self) -> str:
        """Return the configured database URL, otherwise fall back to SQLite."""
        if self.database_url:
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/gmb_dashboard.db"
        return "sqlite:///./gmb_dashboard.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()

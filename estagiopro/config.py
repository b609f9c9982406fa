"""
Application configuration. Loads from environment variables.
Secrets and sensitive config must never be hardcoded.
"""

import os

from dotenv import load_dotenv

load_dotenv()
from functools import lru_cache


@lru_cache(maxsize=1)
def get_settings() -> "Settings":
    """Return cached settings instance."""
    return Settings()


class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "EstagioPro"
    debug: bool = False

    # Database (postgresql+psycopg for psycopg3; sqlite:// allowed for local runs and tests)
    database_url: str = "postgresql+psycopg://localhost:5432/estagiopro_dev"
    db_connect_timeout: int = 10  # seconds

    # Security
    internal_job_token: str = ""  # Required for /internal/* and /api/alerts endpoints

    # Expiration alerts
    alert_window_days: int = 30  # internships ending within this many days get an alert
    alert_check_interval_hours: int = 24
    alert_initial_delay_seconds: int = 60  # first sweep after startup
    alert_scheduler_enabled: bool = True
    alert_display_timezone: str = "America/Sao_Paulo"  # end date shown in alert messages

    # WhatsApp deep links
    whatsapp_country_code: str = "55"

    def __init__(self) -> None:
        self.app_name = os.getenv("APP_NAME", self.app_name)
        self.debug = os.getenv("DEBUG", "false").lower() == "true"

        default_user = os.getenv("PGUSER") or os.getenv("USER") or "postgres"
        default_url = (
            f"postgresql+psycopg://{default_user}:"
            f"{os.getenv('PGPASSWORD', '')}@"
            f"{os.getenv('PGHOST', 'localhost')}:"
            f"{os.getenv('PGPORT', '5432')}/"
            f"{os.getenv('PGDATABASE', 'estagiopro_dev')}"
        )
        raw_url = os.getenv("DATABASE_URL", default_url)
        # Ensure psycopg3 driver if URL uses generic postgresql://
        if raw_url.startswith("postgresql://") and not raw_url.startswith("postgresql+psycopg"):
            raw_url = raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
        self.database_url = raw_url
        self.db_connect_timeout = int(os.getenv("DB_CONNECT_TIMEOUT", str(self.db_connect_timeout)))

        self.internal_job_token = os.getenv("INTERNAL_JOB_TOKEN", "")

        self.alert_window_days = int(
            os.getenv("ALERT_WINDOW_DAYS", str(self.alert_window_days))
        )
        self.alert_check_interval_hours = int(
            os.getenv("ALERT_CHECK_INTERVAL_HOURS", str(self.alert_check_interval_hours))
        )
        self.alert_initial_delay_seconds = int(
            os.getenv("ALERT_INITIAL_DELAY_SECONDS", str(self.alert_initial_delay_seconds))
        )
        self.alert_scheduler_enabled = (
            os.getenv("ALERT_SCHEDULER_ENABLED", "true").lower() == "true"
        )
        self.alert_display_timezone = os.getenv(
            "ALERT_DISPLAY_TIMEZONE", self.alert_display_timezone
        )

        self.whatsapp_country_code = os.getenv(
            "WHATSAPP_COUNTRY_CODE", self.whatsapp_country_code
        ).strip()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

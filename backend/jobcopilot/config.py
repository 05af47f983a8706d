import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Runtime configuration read from the environment (or a .env file)."""

    def __init__(self):
        self.database_url = self._normalize_db_url(
            os.getenv("DATABASE_URL", "sqlite:///./jobcopilot.db")
        )
        self.cron_secret: Optional[str] = os.getenv("CRON_SECRET")
        self.default_user_id: Optional[str] = os.getenv("DEFAULT_USER_ID")

        # Outbound email
        self.resend_api_key: Optional[str] = os.getenv("RESEND_API_KEY")
        self.system_email_from = os.getenv("SYSTEM_EMAIL_FROM", "noreply@jobsearchcopilot.com")
        self.smtp_host: Optional[str] = os.getenv("SMTP_HOST")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user: Optional[str] = os.getenv("SMTP_USER")
        self.smtp_password: Optional[str] = os.getenv("SMTP_PASSWORD")
        self.smtp_secure = os.getenv("SMTP_SECURE", "false").lower() == "true"

        # Inbound email (Gmail OAuth files)
        self.gmail_credentials_path = os.getenv("GMAIL_CREDENTIALS_PATH", "credentials.json")
        self.gmail_token_path = os.getenv("GMAIL_TOKEN_PATH", "token.json")

        self.job_feed_url: Optional[str] = os.getenv("JOB_FEED_URL")
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
            if origin.strip()
        ]
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def _normalize_db_url(url: str) -> str:
        # SQLAlchemy no longer accepts the legacy postgres:// scheme
        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql://", 1)
        return url


@lru_cache()
def get_settings() -> Settings:
    return Settings()

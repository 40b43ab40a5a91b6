"""
Environment-driven settings for the Team Task Board API
"""
import os
from typing import List

from dotenv import load_dotenv

DEV_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Settings:
    """Application settings"""

    def __init__(self):
        self.app_name = os.getenv("APP_NAME", "Team Task Board API")
        self.app_version = os.getenv("APP_VERSION", "1.0.0")
        self.debug = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
        self.environment = os.getenv("ENVIRONMENT", "production")

        self.database_url = os.getenv("DATABASE_URL")
        if not self.database_url:
            raise RuntimeError("DATABASE_URL must be set")

        # Pool sizing, ignored for SQLite
        self.db_pool_size = int(os.getenv("DB_POOL_SIZE", "5"))
        self.db_max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.db_pool_timeout = int(os.getenv("DB_POOL_TIMEOUT", "30"))

        # Users authenticate upstream; the proxy forwards the user id in this header
        self.identity_header = os.getenv("IDENTITY_HEADER", "X-User-ID")

        origins = os.getenv("ALLOWED_ORIGINS", "")
        if not origins and self.environment == "production":
            raise RuntimeError("ALLOWED_ORIGINS must be set in production (comma-separated HTTPS URLs)")
        self.allowed_origins = _split_origins(origins or DEV_ORIGINS)

        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_format = os.getenv("LOG_FORMAT", "json")


load_dotenv()

settings = Settings()

from __future__ import annotations
import os
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    """
    Centralized configuration for Sessions Radar.
    Loads from .env file or environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(__file__), ".env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Google service account
    CLIENT_EMAIL: str
    PRIVATE_KEY: str

    # Analytics account whose web properties are tracked
    ACCOUNT_ID: str

    # Single-slot daily cache
    CACHE_FILE_PATH: str = ".data/data.json"

    # Calendar days for date windows and cache freshness are taken in this zone
    TIMEZONE: str = "UTC"

    # Fan-out across properties
    FETCH_MAX_WORKERS: int = 8
    REQUEST_TIMEOUT_SECONDS: Optional[float] = None

    # HTTP listener (serve entry point)
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS
    ALLOWED_ORIGINS_STR: str = ""

    @field_validator("PRIVATE_KEY")
    @classmethod
    def unescape_private_key(cls, value: str) -> str:
        """Env files usually carry the PEM body with literal \\n sequences"""
        return value.replace("\\n", "\n")

    @field_validator("FETCH_MAX_WORKERS")
    @classmethod
    def at_least_one_worker(cls, value: int) -> int:
        if value < 1:
            raise ValueError("FETCH_MAX_WORKERS must be >= 1")
        return value

    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse comma-separated origins into a list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(",") if origin.strip()]

settings = Settings()

# smartcare/core/config.py
from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "SmartCare Connect"
    # Public frontend URL, used in links sent by email
    APP_URL: str = "https://example.com"

    # Service account JSON for firebase_admin
    FIREBASE_CREDENTIALS: str = "smartcare/core/firebase_key.json"
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_STORAGE_BUCKET: str = ""

    # Callable Cloud Functions (careChat, summarizeAppointment, ...)
    FUNCTIONS_REGION: str = "us-central1"
    FUNCTIONS_TIMEOUT_SECONDS: float = 30.0

    # SMTP for the doctor-approved notification. Empty host disables sending.
    EMAIL_HOST: str = ""
    EMAIL_PORT: int = 587
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    EMAIL_FROM: str = "no-reply@smartcare.app"
    EMAIL_USE_TLS: bool = True

    LOG_LEVEL: str = "INFO"
    AI_DEBUG_MODE: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Identity provider (Firebase Auth REST API)
    FIREBASE_API_KEY: str | None = None
    IDENTITY_BASE_URL: str = "https://identitytoolkit.googleapis.com/v1"
    FEDERATED_PROVIDER_ID: str = "google.com"
    FEDERATED_REQUEST_URI: str = "http://localhost"
    IDENTITY_TIMEOUT: int = 15

    # Outbound webhook
    WEBHOOK_DELIVERY_MODE: Literal["fire_and_forget", "confirmed"] = "fire_and_forget"
    WEBHOOK_TIMEOUT: int = 30

    # Task generation
    TASK_GENERATOR: Literal["placeholder", "webhook_response"] = "placeholder"

    # Idle server-side sessions are closed after this many seconds; 0 disables
    SESSION_TTL_SECONDS: int = 3600

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()


def get_settings() -> Settings:
    """Convenience accessor for code expecting a callable."""
    return settings

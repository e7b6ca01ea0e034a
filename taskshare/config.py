"""Application configuration settings."""
from __future__ import annotations

import os
from decimal import Decimal
from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Runtime toggles -----------------------------------------------------
# Execution environment: "dev" | "test" | "staging" | "prod"
ENV = os.getenv("TASKSHARE_ENV", "dev").lower()

DEV_JWT_SECRET = "dev-only-jwt-secret-change-me-before-deploying"


class Settings(BaseSettings):
    """Environment configuration for the Taskshare backend."""

    app_env: str = ENV
    database_url: str = "sqlite:///taskshare.db"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:8081",
    ]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = False
    ALLOW_DB_CREATE_ALL: bool = False
    SCHEDULER_ENABLED: bool = False

    # --- Auth --------------------------------------------------------------
    JWT_SECRET: str = DEV_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_DAYS: int = 14

    # --- Payments ----------------------------------------------------------
    STRIPE_ENABLED: bool = False
    STRIPE_SECRET_KEY: str | None = None
    STRIPE_WEBHOOK_SECRET: str | None = None
    PAYMENT_CURRENCY: str = "EUR"
    SERVICE_FEE_PER_HOUR: Decimal = Decimal("2.50")
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    APP_DEEP_LINK: str = "taskshare://payment"

    # --- Storage & push ----------------------------------------------------
    MEDIA_ROOT: str = "public"
    FIREBASE_CREDENTIALS_FILE: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET", "FIREBASE_CREDENTIALS_FILE")
    @classmethod
    def _strip_empty_secret(cls, value: str | None) -> str | None:
        """Normalise empty secrets to ``None`` for easier validation."""

        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @property
    def is_dev(self) -> bool:
        return self.app_env.lower() in {"dev", "local", "test"}


class AppInfo(BaseModel):
    name: str = "taskshare-backend"
    version: str = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


__all__ = [
    "ENV",
    "DEV_JWT_SECRET",
    "Settings",
    "AppInfo",
    "get_settings",
]

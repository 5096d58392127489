from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from qms.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Quality API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for food-manufacturing quality control: production lots, "
            "hygiene and PCC inspections, quality cycles, internal chat and reports."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed the initial plant data after migrations.",
    )
    SEED_DEFAULT_PASSWORD: str = Field(
        default="tropical123",
        description="Password assigned to the seeded users.",
    )

    # Tokens
    JWT_SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=15, description="Access token lifetime; matches the UI inactivity timeout."
    )
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)
    PASSWORD_RESET_EXPIRE_MINUTES: int = Field(default=30)

    # Object storage
    STORAGE_BACKEND: str = Field(default="local", description="local | azure")
    STORAGE_LOCAL_DIR: str = Field(default="uploads")
    STORAGE_PUBLIC_BASE_URL: str = Field(default="/files")
    AZURE_STORAGE_CONNECTION_STRING: Optional[str] = Field(default=None)
    AZURE_STORAGE_CONTAINER: str = Field(default="qms-uploads")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level (DEBUG, INFO, WARNING...)")

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    # Automatically load from .env at runtime.
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def _check_storage_backend(cls, v: str) -> str:
        v = (v or "local").lower()
        if v not in ("local", "azure"):
            raise ValueError("STORAGE_BACKEND must be 'local' or 'azure'")
        return v


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      A new instance is built on each call so tests can override the environment.
    """
    return AppSettings()

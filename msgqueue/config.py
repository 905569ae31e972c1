"""
Application configuration using Pydantic Settings.
Every field can be set from the environment or a ``.env`` file, e.g.
``STORAGE_BACKEND=sql DATABASE_URL=postgresql+asyncpg://...``.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    storage_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./msgqueue.db"
    database_pool_size: int = Field(default=10, ge=1)
    database_max_overflow: int = Field(default=20, ge=0)
    # Local SQLite convenience; deployed schemas come from Alembic
    database_create_tables: bool = False

    # HTTP
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_allow_origins: list[str] = ["*"]

    # Queues
    default_visibility_timeout: int = Field(default=30, ge=0)
    max_visibility_timeout: int = Field(default=43200, ge=0)
    list_page_size: int = Field(default=1000, ge=1)

    # Observability
    otel_exporter_otlp_endpoint: str | None = None
    otel_service_name: str = "msgqueue"
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @model_validator(mode="after")
    def check_visibility_timeouts(self) -> "Settings":
        if self.default_visibility_timeout > self.max_visibility_timeout:
            raise ValueError("default_visibility_timeout exceeds max_visibility_timeout")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

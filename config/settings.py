"""
IDA Configuration Module.

Centralized configuration using Pydantic Settings.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Sub-configs read os.environ directly, so .env is loaded up front.
load_dotenv()


class PostgresConfig(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="ida", description="PostgreSQL username")
    password: str = Field(default="", description="PostgreSQL password")
    db: str = Field(default="ida", description="PostgreSQL database name")
    url: str | None = Field(
        default=None,
        description="Full SQLAlchemy async URL; overrides the host/port/user fields",
    )
    statement_timeout: float = Field(
        default=30.0, gt=0, description="Per-statement timeout in seconds"
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    create_schema: bool = Field(
        default=True, description="Create missing tables on startup"
    )

    @property
    def async_connection_string(self) -> str:
        """Get async SQLAlchemy connection string."""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"


class APIConfig(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=8000, description="API port")


class PaginationConfig(BaseSettings):
    """Paging defaults for list endpoints."""

    model_config = SettingsConfigDict(env_prefix="PAGINATION_")

    default_page_size: int = Field(default=20, ge=1, description="Page size when none is given")
    max_page_size: int = Field(default=100, ge=1, description="Upper cap on page size")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-configs
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="Logging format"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global config instance
config = get_settings()

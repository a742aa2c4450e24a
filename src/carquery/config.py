"""Application configuration using pydantic-settings."""

import secrets
from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/carquery.db",
        description="Async SQLAlchemy URL (sqlite+aiosqlite or postgresql+asyncpg)",
    )
    database_echo: bool = Field(default=False, description="Log emitted SQL statements")

    # Admin auth
    jwt_secret: str = Field(
        default_factory=lambda: secrets.token_hex(64),
        min_length=32,
        description="Secret key for admin JWT signing (random per process when unset)",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    admin_token_expiration_hours: int = Field(
        default=2, ge=1, description="Admin token lifetime in hours"
    )
    admin_password_hash: str = Field(
        default="", description="Salted hash of the admin passphrase (werkzeug format)"
    )
    admin_password: str = Field(
        default="",
        description="Plain admin passphrase, hashed once at startup when no hash is configured",
    )

    # Session tokens for the results pages
    session_token_ttl_minutes: int = Field(
        default=10, ge=1, description="How long a results-page token stays valid"
    )
    session_token_sweep_minutes: int = Field(
        default=15, ge=1, description="Sweep interval and maximum age of stored tokens"
    )

    # App
    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug: bool | None = Field(default=None, description="Debug mode (defaults based on environment)")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins",
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Read the client IP from X-Forwarded-For / X-Real-IP (trusted proxy only)",
    )

    # Sentry
    sentry_dsn: str = Field(default="", description="Sentry DSN for error tracking")

    @model_validator(mode="after")
    def check_session_token_windows(self) -> "Settings":
        """Stored tokens must outlive their TTL or the sweeper deletes live ones."""
        if self.session_token_ttl_minutes > self.session_token_sweep_minutes:
            raise ValueError(
                "SESSION_TOKEN_TTL_MINUTES must not exceed SESSION_TOKEN_SWEEP_MINUTES"
            )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.environment == "test"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def debug_enabled(self) -> bool:
        """Get debug mode, defaulting based on environment if not explicitly set."""
        if self.debug is not None:
            return self.debug
        return self.is_development


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience alias
settings = get_settings()

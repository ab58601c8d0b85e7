"""Configuration management for the expense RBAC service.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EXPENSE_RBAC_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "Expense RBAC"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./rbac_data/expense_rbac.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://localhost:5173"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Role Settings
    administrator_role_name: str = Field(
        default="administrator",
        description="Slug of the role allowed to hold admin-only features",
    )
    default_role_name: str = Field(
        default="account_officer",
        description="Role assumed for users whose session carries no role",
    )
    seed_system_roles: bool = Field(
        default=True,
        description="Create the built-in system roles on startup if missing",
    )

    # Feature Visibility Settings
    toggle_debounce_seconds: float = 1.0
    bulk_impact_warning_threshold: int = 5
    preview_min_feature_count: int = 3
    check_affected_users: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("administrator_role_name", "default_role_name")
    @classmethod
    def normalize_role_name(cls, v: str) -> str:
        """Role names are compared in their slug form."""
        return "_".join(v.strip().lower().split())

    @field_validator("toggle_debounce_seconds")
    @classmethod
    def validate_debounce(cls, v: float) -> float:
        """Reject negative quiet periods."""
        if v < 0:
            raise ValueError("toggle_debounce_seconds must not be negative")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once at startup; call ``get_settings.cache_clear()``
    to force a reload (tests do this after patching the environment).

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()

"""
Application configuration management.

Uses pydantic-settings for type-safe environment variable parsing.
All configuration is centralized here to support dependency injection
and avoid scattering os.getenv() calls throughout the codebase.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_STORAGE_TYPE = "localstorage"


def normalize_storage_type(value: Optional[str]) -> str:
    """Lowercase and strip a storage type name; None or blank falls back to localstorage."""
    value = (value or "").strip().lower()
    return value or DEFAULT_STORAGE_TYPE


class Settings(BaseSettings):
    """
    Application settings with validation and type coercion.

    Values are loaded from environment variables or .env file.
    Secrets default to unset; the environment validator reports
    which of them are missing for the selected storage type.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Backend Selection
    # Options: "localstorage", "redis", "upstash", "d1"
    # Kept as a plain string: unknown values are reported, not rejected.
    storage_type: str = DEFAULT_STORAGE_TYPE

    # Redis
    redis_url: Optional[str] = None

    # Upstash (REST API)
    upstash_url: Optional[str] = None
    upstash_token: Optional[str] = None

    # Cloudflare D1 (HTTP query API)
    d1_database_id: Optional[str] = None
    d1_account_id: Optional[str] = None
    d1_api_token: Optional[str] = None
    d1_api_base_url: str = "https://api.cloudflare.com/client/v4"

    # Administrator identity; the password doubles as the cookie signing key
    username: Optional[str] = None
    password: Optional[str] = None

    # Site
    enable_register: bool = False
    site_name: Optional[str] = None

    # Diagnostics
    debug_key: Optional[str] = None
    docker_env: bool = False

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Environment
    environment: Literal["development", "staging", "production"] = "production"

    @field_validator("storage_type", mode="before")
    @classmethod
    def validate_storage_type(cls, v: Optional[str]) -> str:
        """Normalize the storage type; blank means localstorage."""
        return normalize_storage_type(v)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_local_storage(self) -> bool:
        """Check if the browser keeps all data (no server-side storage)."""
        return self.storage_type == DEFAULT_STORAGE_TYPE

    @property
    def signing_secret(self) -> str:
        """Key used to sign auth cookies (the admin password, may be empty)."""
        return self.password or ""


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings singleton.

    Use this function to get settings instance throughout the application.
    The @lru_cache ensures we only parse environment once.
    """
    return Settings()

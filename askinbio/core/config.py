"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The datastore connection string and the identity provider endpoint/key
    have no defaults, so a missing value fails at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "AskInBio API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str
    database_timeout: float = 10.0

    # Identity provider (Supabase Auth)
    supabase_url: str
    supabase_anon_key: str
    supabase_jwt_secret: str = ""
    identity_timeout: float = 10.0
    session_refresh_threshold: int = 300  # seconds

    # Click tracking
    click_record_timeout: float = 2.0
    geoip_database_path: str = ""

    # Rate limiting (use a redis:// URL in production)
    rate_limit_storage_uri: str = "memory://"

    # Security
    secret_key: str = "change-me-in-production"
    cors_origins: list[str] = ["http://localhost:3000"]
    frontend_url: str = "http://localhost:3000"

    # Observability
    sentry_dsn: str = ""
    otlp_endpoint: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

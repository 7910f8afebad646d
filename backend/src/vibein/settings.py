"""Application settings and configuration."""

import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "your_jwt_secret_key_here_at_least_32_characters"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "vibein"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console or json
    allowed_origins: str = "http://localhost:3000"

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Document store
    database_url: str = "sqlite:///./vibein.db"
    document_store: str = "sql"  # sql or memory
    transaction_max_attempts: int = 5

    # Offers
    default_max_participants: int = 100

    # Review extraction service
    review_extractor_url: str = "http://localhost:8000/extract"
    review_extractor_timeout_seconds: float = 60.0
    review_strict_validation: bool = True
    review_use_llm_fallback: bool = False

    # Google Places (business onboarding)
    google_places_api_key: str | None = None
    places_language: str = "en"
    places_region: str = "US"

    # SendGrid notifications
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = "noreply@vibein.app"
    sendgrid_from_name: str = "vibeIn"
    notification_email: str = "team@vibein.app"

    # HTTP Client
    request_timeout_seconds: int = 30
    max_retries: int = 3


# Global settings instance
settings = Settings()

# ── Security validation ──────────────────────────────────────────────
if settings.env == "production":
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        print(
            "\n❌  FATAL: JWT_SECRET_KEY is insecure or too short (min 32 chars).\n"
            "   Set a strong random value:  openssl rand -hex 32\n",
            file=sys.stderr,
        )
        sys.exit(1)

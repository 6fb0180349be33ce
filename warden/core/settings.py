"""Application settings using Pydantic Settings for typed configuration.

This module centralizes all configuration and provides type-safe access to settings.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_ENV_NAMES = frozenset({"dev", "development", "local"})


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env_name: str = Field(default="development", alias="ENV_NAME")

    # Database
    database_url: str = Field(alias="DATABASE_URL")

    # Token signing
    jwt_secret: str = Field(alias="JWT_SECRET", min_length=16)
    session_expires_days: int = Field(
        default=7, alias="SESSION_EXPIRES_DAYS", ge=1, le=30
    )
    link_token_expires_minutes: int = Field(
        default=10, alias="LINK_TOKEN_EXPIRES_MINUTES", ge=1, le=60
    )

    # Recovery tokens
    email_verify_expires_hours: int = Field(
        default=24, alias="EMAIL_VERIFY_EXPIRES_HOURS", ge=1
    )
    password_reset_expires_minutes: int = Field(
        default=30, alias="PASSWORD_RESET_EXPIRES_MINUTES", ge=1
    )

    # Second factor
    totp_issuer: str = Field(default="Warden", alias="TOTP_ISSUER")

    # Accounts
    preferences_max_bytes: int = Field(
        default=8000, alias="PREFERENCES_MAX_BYTES", ge=2
    )
    placeholder_email_domain: str = Field(
        default="placeholder.com", alias="PLACEHOLDER_EMAIL_DOMAIN"
    )
    trust_provider_email: bool = Field(default=True, alias="TRUST_PROVIDER_EMAIL")

    # Admin panel
    session_secret_key: str = Field(alias="SESSION_SECRET_KEY")

    # CORS
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Email (Resend)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    mail_from: str = Field(default="Warden <noreply@resend.dev>", alias="MAIL_FROM")

    # Public URLs
    public_backend_url: str = Field(
        default="http://localhost:8000", alias="PUBLIC_BACKEND_URL"
    )
    client_url: str = Field(default="http://localhost:3000", alias="CLIENT_URL")

    # OAuth providers (a provider is enabled when both values are set)
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID")
    google_client_secret: str | None = Field(
        default=None, alias="GOOGLE_CLIENT_SECRET"
    )
    github_client_id: str | None = Field(default=None, alias="GITHUB_CLIENT_ID")
    github_client_secret: str | None = Field(
        default=None, alias="GITHUB_CLIENT_SECRET"
    )
    microsoft_client_id: str | None = Field(default=None, alias="MICROSOFT_CLIENT_ID")
    microsoft_client_secret: str | None = Field(
        default=None, alias="MICROSOFT_CLIENT_SECRET"
    )
    facebook_app_id: str | None = Field(default=None, alias="FACEBOOK_APP_ID")
    facebook_app_secret: str | None = Field(default=None, alias="FACEBOOK_APP_SECRET")

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        origins = []
        for o in self.cors_origins.split(","):
            trimmed = o.strip()
            if trimmed:
                origins.append(trimmed)
        return origins

    @computed_field
    @property
    def is_development(self) -> bool:
        """Whether error details and token previews may be returned to clients."""
        return self.env_name.lower() in DEVELOPMENT_ENV_NAMES

    @computed_field
    @property
    def session_expires_in(self) -> timedelta:
        """Get session token lifetime as timedelta."""
        return timedelta(days=self.session_expires_days)

    @computed_field
    @property
    def link_token_expires_in(self) -> timedelta:
        """Get linking-intent token lifetime as timedelta."""
        return timedelta(minutes=self.link_token_expires_minutes)

    def provider_credentials(self, provider: str) -> tuple[str, str] | None:
        """Return (client_id, client_secret) for a provider, or None if unset."""
        if provider == "facebook":
            client_id, client_secret = self.facebook_app_id, self.facebook_app_secret
        else:
            client_id = getattr(self, f"{provider}_client_id", None)
            client_secret = getattr(self, f"{provider}_client_secret", None)
        if not client_id or not client_secret:
            return None
        return client_id, client_secret


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()

"""Configuration management for the application."""

from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class VapidConfig:
    """VAPID credentials identifying this server to push services."""

    public_key: str | None
    private_key: str | None
    subject: str

    @property
    def is_configured(self) -> bool:
        return bool(self.public_key and self.private_key)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (no default: the server refuses to start without it)
    database_url: str | None = Field(default=None)

    # JWT
    jwt_secret: str = Field(default="change-me-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expiration_minutes: int = Field(default=10080)  # 7 days

    # Web push (VAPID)
    vapid_public_key: str | None = Field(default=None)
    vapid_private_key: str | None = Field(default=None)
    vapid_subject: str = Field(default="mailto:example@domain.com")

    # Frontend deployments
    cors_origins: str = Field(default="")
    production_origin: str = Field(default="https://pwa-front-rho.vercel.app")
    development_origin: str = Field(default="http://localhost:5173")
    deployment_origin: str | None = Field(default=None)

    # API
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")  # noqa: S104
    port: int = Field(default=5000)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.environment == "production":
            if self.jwt_secret == "change-me-in-production":  # noqa: S105
                raise ValueError("JWT_SECRET must be changed in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def current_origin(self) -> str:
        """Frontend origin whose subscribers this deployment notifies."""
        if self.deployment_origin:
            return self.deployment_origin
        return self.production_origin if self.is_production else self.development_origin

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins parsed from the comma separated CORS_ORIGINS value."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def vapid_config(self) -> VapidConfig:
        return VapidConfig(
            public_key=self.vapid_public_key,
            private_key=self.vapid_private_key,
            subject=self.vapid_subject,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Application settings and configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "your_jwt_secret_key_here_at_least_32_characters"}


class InsecureSettingsError(RuntimeError):
    """Raised when production settings fail the security checks."""


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    env: str = "development"
    allowed_origins: str = "*"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] = "console"

    # Database
    database_url: str = "sqlite:///./loyalty.db"
    database_echo: bool = False

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = Field(default=60, ge=1)

    # Passwords
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # Loyalty program
    referral_bonus_points: int = Field(default=10, ge=0)
    referral_bonus_recomputes_tier: bool = False  # Referrer tier is left as-is by default

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def origins(self) -> list[str]:
        """Allowed CORS origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


def check_settings(settings: Settings) -> None:
    """Refuse to run production with a weak JWT secret.

    Raises:
        InsecureSettingsError: If the secret is a known default or too short
    """
    if not settings.is_production:
        return
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        raise InsecureSettingsError(
            "JWT_SECRET_KEY is insecure or too short (min 32 chars). "
            "Set a strong random value:  openssl rand -hex 32"
        )


# Global settings instance
settings = Settings()

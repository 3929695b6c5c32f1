"""
Settings for the credentials service.

Uses Pydantic Settings for automatic environment variable loading.

Example:
    from common.config import Settings

    settings = Settings()
    settings.validate_required()
    print(settings.CLOUDFLARE_NAMESPACE_ID)
"""

from datetime import timedelta
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Static configuration bundle: KV credentials, signing secret, token
    lifetime and server options.
    """

    # ==========================================================================
    # Key-Value Store
    # ==========================================================================
    KV_BACKEND: str = "cloudflare"  # "cloudflare" or "memory"

    # Cloudflare API credentials (API token, or legacy API key + email)
    CLOUDFLARE_API_TOKEN: Optional[str] = None
    CLOUDFLARE_API_KEY: Optional[str] = None
    CLOUDFLARE_EMAIL: Optional[str] = None

    # Cloudflare account and Workers KV namespace
    CLOUDFLARE_ACCOUNT_ID: Optional[str] = None
    CLOUDFLARE_NAMESPACE_ID: Optional[str] = None

    CLOUDFLARE_API_BASE_URL: str = "https://api.cloudflare.com/client/v4"
    CLOUDFLARE_TIMEOUT_SECONDS: float = 10.0

    # ==========================================================================
    # Authentication Settings
    # ==========================================================================
    JWT_SECRET: Optional[str] = None
    JWT_EXPIRATION_HOURS: int = 24
    BCRYPT_ROUNDS: int = 12

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # CORS Settings
    CORS_ORIGINS: str = "*"  # Comma-separated origins or "*"

    # ==========================================================================
    # Pydantic Settings Configuration
    # ==========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    @property
    def token_lifetime(self) -> timedelta:
        """Token lifetime, 24 hours when unset or non-positive."""
        hours = self.JWT_EXPIRATION_HOURS if self.JWT_EXPIRATION_HOURS > 0 else 24
        return timedelta(hours=hours)

    def get_cors_origins(self) -> list:
        """Parse CORS_ORIGINS into a list."""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT.lower() == "development"

    def validate_required(self) -> None:
        """
        Validate that required settings are configured.

        Raises:
            ValueError: If required settings are missing
        """
        errors = []

        if not self.JWT_SECRET:
            errors.append("JWT_SECRET is required")

        if self.KV_BACKEND not in ("cloudflare", "memory"):
            errors.append(f"KV_BACKEND must be 'cloudflare' or 'memory', got '{self.KV_BACKEND}'")

        if self.KV_BACKEND == "cloudflare":
            if not self.CLOUDFLARE_API_TOKEN and not (
                self.CLOUDFLARE_API_KEY and self.CLOUDFLARE_EMAIL
            ):
                errors.append(
                    "Cloudflare authentication required: either CLOUDFLARE_API_TOKEN "
                    "or CLOUDFLARE_API_KEY + CLOUDFLARE_EMAIL"
                )
            if not self.CLOUDFLARE_ACCOUNT_ID:
                errors.append("CLOUDFLARE_ACCOUNT_ID is required")
            if not self.CLOUDFLARE_NAMESPACE_ID:
                errors.append("CLOUDFLARE_NAMESPACE_ID is required")

        if not 4 <= self.BCRYPT_ROUNDS <= 31:
            errors.append("BCRYPT_ROUNDS must be between 4 and 31")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))

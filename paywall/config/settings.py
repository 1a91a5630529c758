"""
Application Settings for the Paywall backend

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Optional
from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    ENVIRONMENT and APP_URL also accept the names used by the web
    frontend deployment (NODE_ENV and NEXT_PUBLIC_APP_URL), so both
    sides can share a single .env file.
    """

    # Application Settings
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )
    debug: bool = False
    log_level: str = "INFO"

    # Public origin used for every checkout redirect and portal return URL
    app_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("APP_URL", "NEXT_PUBLIC_APP_URL"),
    )

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Stripe Configuration
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_test_clock_id: Optional[str] = None  # non-production only

    # Checkout presentation
    checkout_locale: str = "ja"
    checkout_currency: str = "jpy"
    shipping_allowed_countries: list[str] = ["JP"]

    # Auth
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def validate_stripe_keys(self) -> "Settings":
        """Production deployments must carry Stripe credentials."""
        if self.is_production and not self.stripe_secret_key:
            raise ValueError("STRIPE_SECRET_KEY required when ENVIRONMENT=production")

        self.app_url = self.app_url.rstrip("/")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()

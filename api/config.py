"""
API Configuration Management

Centralized settings for the HTTP layer and the triage pipeline, loaded
from the environment and an optional ``.env`` file.

Design Considerations:
- Environment-specific configuration profiles
- Secrets held as SecretStr and only unwrapped at the integration boundary
- Provider credentials are optional here; their absence is reported per request
- Defaults mirror inbox_desk.config
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field, SecretStr, field_validator

from inbox_desk.config import COMPOSER_CONFIG, TRIAGE_CONFIG


class EnvironmentType(str, Enum):
    """Valid environment types for configuration context."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class CacheBackend(str, Enum):
    """Where the triage cache slots are stored."""
    DATABASE = "database"
    MEMORY = "memory"


class APISettings(BaseSettings):
    """
    API configuration settings with environment-specific defaults and validation.

    Google and Groq credentials may be left unset; triage requests then fail
    with a configuration error instead of the application refusing to start.
    """
    # Environment Configuration
    ENVIRONMENT: EnvironmentType = Field(
        default=EnvironmentType.DEVELOPMENT,
        description="Runtime environment context"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    # API Settings
    API_TITLE: str = Field(
        default="Inbox Desk API",
        description="API title for documentation"
    )
    API_DESCRIPTION: str = Field(
        default="Contacts, notes and outbound email, plus AI triage of the Gmail inbox",
        description="API description for documentation"
    )
    API_VERSION: str = Field(
        default="1.0.0",
        description="API version"
    )

    # CORS Settings
    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed origins for CORS"
    )
    CORS_METHODS: str = Field(
        default="GET,POST,PUT,DELETE,OPTIONS",
        description="Comma-separated list of allowed methods for CORS"
    )

    # Gmail OAuth
    GOOGLE_CLIENT_ID: Optional[str] = Field(
        default=None,
        description="OAuth client id of the Gmail integration"
    )
    GOOGLE_CLIENT_SECRET: Optional[SecretStr] = Field(
        default=None,
        description="OAuth client secret of the Gmail integration"
    )
    GOOGLE_REFRESH_TOKEN: Optional[SecretStr] = Field(
        default=None,
        description="Refresh token for the triaged mailbox"
    )

    # Groq
    GROQ_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="Groq API key used for classification and composition"
    )
    GROQ_MODEL: str = Field(
        default=TRIAGE_CONFIG["classifier"]["model"]["name"],
        description="Chat model used by the batch classifier"
    )
    GROQ_MAX_RETRIES: int = Field(
        default=TRIAGE_CONFIG["classifier"]["model"]["retry_count"],
        ge=1,
        description="Attempts per Groq request before giving up"
    )

    # Triage
    UNREAD_WINDOW_HOURS: int = Field(
        default=TRIAGE_CONFIG["mail_source"]["unread_window_hours"],
        gt=0,
        description="Look-back window for unread inbox mail"
    )
    UNREAD_PAGE_SIZE: int = Field(
        default=TRIAGE_CONFIG["mail_source"]["unread_page_size"],
        gt=0,
        description="Maximum unread messages listed per triage run"
    )
    SENT_WINDOW_DAYS: int = Field(
        default=TRIAGE_CONFIG["mail_source"]["sent_window_days"],
        gt=0,
        description="Look-back window for sent mail when checking replies"
    )
    SENT_PAGE_SIZE: int = Field(
        default=TRIAGE_CONFIG["mail_source"]["sent_page_size"],
        gt=0,
        description="Maximum sent messages listed per triage run"
    )
    CACHE_TTL_SECONDS: int = Field(
        default=TRIAGE_CONFIG["cache"]["ttl_seconds"],
        gt=0,
        description="TTL applied to every triage cache write"
    )
    CACHE_BACKEND: CacheBackend = Field(
        default=CacheBackend.DATABASE,
        description="Triage cache storage: database or memory"
    )

    # Identity provider webhooks
    SIGNING_SECRET: Optional[SecretStr] = Field(
        default=None,
        description="svix signing secret (whsec_...) for user webhooks"
    )

    # Outbound email
    DEFAULT_FROM_NAME: str = Field(
        default=COMPOSER_CONFIG["default_from_name"],
        description="Display name used on outbound email when none is given"
    )

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, value: str) -> list:
        """Parse comma-separated CORS origins into list."""
        if value == "*":
            return ["*"]
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @field_validator("CORS_METHODS")
    @classmethod
    def parse_cors_methods(cls, value: str) -> list:
        """Parse comma-separated CORS methods into list."""
        return [method.strip() for method in value.split(",") if method.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalise and check the logging level name."""
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Invalid log level: {value}")
        return level

    @staticmethod
    def secret(value: Optional[SecretStr]) -> Optional[str]:
        """Unwrap an optional secret."""
        return value.get_secret_value() if value is not None else None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"
    }


@lru_cache()
def get_settings() -> APISettings:
    """
    Retrieve validated API settings.

    Returns:
        Validated API settings object

    Raises:
        ValidationError: If configuration fails validation
    """
    return APISettings()

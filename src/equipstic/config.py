"""Application configuration management using Pydantic Settings.

This module loads the settings used by the command line (and by any
application embedding the client) from environment variables, and turns them
into a :class:`~equipstic.libs.inventory.config.ClientConfig`.
"""

import logging
from typing import ClassVar, Final

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from equipstic.libs.inventory.cache import DEFAULT_CACHE_MAXSIZE
from equipstic.libs.inventory.config import DEFAULT_MAX_CONCURRENT_LOOKUPS, ClientConfig
from equipstic.libs.inventory.exceptions import ConfigError
from equipstic.libs.inventory.models import DEFAULT_SERVER_TIMEZONE

logger = logging.getLogger(__name__)

# Environment variable prefix constants
ENV_PREFIX_NAME: Final[str] = "EQUIPSTIC"
ENV_PREFIX_DELIMITER: Final[str] = "_"
ENV_PREFIX: Final[str] = f"{ENV_PREFIX_NAME}{ENV_PREFIX_DELIMITER}"

# Environment variable name constants - dynamically generated from prefix
BASE_URL_ENV: Final[str] = f"{ENV_PREFIX}BASE_URL"
USERNAME_ENV: Final[str] = f"{ENV_PREFIX}USERNAME"
PASSWORD_ENV: Final[str] = f"{ENV_PREFIX}PASSWORD"
TIMEZONE_ENV: Final[str] = f"{ENV_PREFIX}TIMEZONE"
TIMEOUT_ENV: Final[str] = f"{ENV_PREFIX}TIMEOUT"
CACHE_TTL_ENV: Final[str] = f"{ENV_PREFIX}CACHE_TTL"
CACHE_MAXSIZE_ENV: Final[str] = f"{ENV_PREFIX}CACHE_MAXSIZE"
MAX_CONCURRENT_LOOKUPS_ENV: Final[str] = f"{ENV_PREFIX}MAX_CONCURRENT_LOOKUPS"
ENVIRONMENT_ENV: Final[str] = f"{ENV_PREFIX}ENV"
LOGFIRE_TOKEN_ENV: Final[str] = f"{ENV_PREFIX}LOGFIRE_TOKEN"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # EquipsTIC API access through the SOA bus
    base_url: str = Field(
        ...,
        description="Base URL of the EquipsTIC API",
        validation_alias=BASE_URL_ENV,
    )
    username: str = Field(
        ...,
        description="SOA bus user with access to the EquipsTIC API",
        validation_alias=USERNAME_ENV,
    )
    password: str = Field(
        ...,
        description="Password of the SOA bus user",
        validation_alias=PASSWORD_ENV,
    )
    timezone: str = Field(
        default=DEFAULT_SERVER_TIMEZONE,
        description="Time zone of the EquipsTIC server",
        validation_alias=TIMEZONE_ENV,
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout in seconds",
        validation_alias=TIMEOUT_ENV,
    )

    # Lookup cache (disabled unless a TTL is set)
    cache_ttl_seconds: float | None = Field(
        default=None,
        description="Lifetime in seconds of cached reference lookups",
        validation_alias=CACHE_TTL_ENV,
    )
    cache_maxsize: int = Field(
        default=DEFAULT_CACHE_MAXSIZE,
        description="Maximum number of cached lookups",
        validation_alias=CACHE_MAXSIZE_ENV,
    )
    max_concurrent_lookups: int = Field(
        default=DEFAULT_MAX_CONCURRENT_LOOKUPS,
        description="Maximum number of relation lookups in flight while hydrating records",
        validation_alias=MAX_CONCURRENT_LOOKUPS_ENV,
    )

    # Environment Configuration
    environment: str = Field(
        default="development",
        description="Environment name (e.g., 'development', 'production', 'staging')",
        validation_alias=ENVIRONMENT_ENV,
    )

    # Logfire Configuration (optional)
    logfire_token: str | None = Field(
        default=None,
        description="Optional Pydantic Logfire token for observability",
        validation_alias=LOGFIRE_TOKEN_ENV,
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate that the base URL uses HTTPS."""
        if not v.startswith("https://"):
            raise ValueError("EquipsTIC base URL must use HTTPS (https://)")
        return v.rstrip("/")

    def to_client_config(self) -> ClientConfig:
        """Build the client configuration from these settings.

        Raises:
            ConfigError: If the values are rejected by the client configuration.
        """
        try:
            return ClientConfig(
                base_url=self.base_url,
                username=self.username,
                password=self.password,
                timezone=self.timezone,
                timeout_seconds=self.timeout_seconds,
                cache_ttl_seconds=self.cache_ttl_seconds,
                cache_maxsize=self.cache_maxsize,
                max_concurrent_lookups=self.max_concurrent_lookups,
            )
        except ValidationError as e:
            raise ConfigError("Invalid EquipsTIC client configuration", details=str(e)) from e

    def model_post_init(self, __context: object, /) -> None:
        """Log configuration after initialization."""
        logger.info("Application configuration loaded successfully")
        logger.info(
            "EquipsTIC API configured",
            extra={"base_url": self.base_url, "timezone": self.timezone},
        )
        # Log credential presence without exposing values
        logger.info("%sPASSWORD is configured", ENV_PREFIX)

"""Configuration for the EquipsTIC client."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from equipstic.libs.inventory.cache import DEFAULT_CACHE_MAXSIZE
from equipstic.libs.inventory.models import DEFAULT_SERVER_TIMEZONE

DEFAULT_MAX_CONCURRENT_LOOKUPS = 10


class _ProgrammaticSettings(BaseSettings):
    """Base class to disable environment variable loading for settings."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Disable all settings sources except for programmatic initialization."""
        return (init_settings,)


class ClientConfig(_ProgrammaticSettings):
    """Configuration for the EquipsTIC API client."""

    model_config = SettingsConfigDict(validate_assignment=True)

    base_url: str = Field(
        ...,
        description="Base URL of the EquipsTIC API as published on the SOA bus (must use HTTPS).",
    )
    username: str = Field(
        ...,
        description="SOA bus user with access to the API.",
    )
    password: str = Field(
        ...,
        description="Password of the SOA bus user.",
    )
    timezone: str = Field(
        default=DEFAULT_SERVER_TIMEZONE,
        description="IANA time zone used by the EquipsTIC server for date-time fields.",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every HTTP call.",
    )
    cache_ttl_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Lifetime of cached lookups; None disables the built-in cache.",
    )
    cache_maxsize: int = Field(
        default=DEFAULT_CACHE_MAXSIZE,
        gt=0,
        description="Maximum number of entries kept by the built-in cache.",
    )
    max_concurrent_lookups: int = Field(
        default=DEFAULT_MAX_CONCURRENT_LOOKUPS,
        gt=0,
        description="Maximum number of relation lookups in flight while hydrating records.",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate and normalize base_url.

        Requirements:
        1. Must use HTTPS protocol
        2. Strips trailing slashes

        Raises:
            ValueError: If base_url is empty or doesn't use HTTPS
        """
        if not v:
            raise ValueError("base_url cannot be empty")

        if not v.startswith("https://"):
            raise ValueError("base_url must use HTTPS protocol")

        return v.rstrip("/")

    @field_validator("username", "password")
    @classmethod
    def validate_credentials(cls, v: str) -> str:
        """Reject blank credentials."""
        if not v.strip():
            raise ValueError("credentials cannot be blank")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the time zone is a known IANA identifier."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown time zone: {v}") from e
        return v

    @property
    def zone(self) -> ZoneInfo:
        """The server time zone as a ZoneInfo."""
        return ZoneInfo(self.timezone)

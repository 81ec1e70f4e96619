"""Runtime settings for tron-deployments library."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import Field, ValidationError, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_CONFIRMATION_TIMEOUT,
    DEFAULT_FEE_LIMIT,
    DEFAULT_NETWORK,
    DEFAULT_POLL_INTERVAL,
    ENV_API_KEY,
    ENV_BUILD_DIR,
    ENV_CONFIRMATION_TIMEOUT,
    ENV_FEE_LIMIT,
    ENV_FULL_HOST,
    ENV_MIN_BALANCE,
    ENV_NETWORK,
    ENV_POLL_INTERVAL,
    ENV_PRIVATE_KEY,
    NETWORK_CONFIG,
)
from .exceptions import ConfigurationError, MissingConfigurationError
from .paths import get_default_build_dir


class Settings(BaseSettings):
    """Connection and deployment settings.

    Each field is read from the environment variable named by its alias.
    """

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    network: str = Field(default=DEFAULT_NETWORK, validation_alias=ENV_NETWORK)
    full_host: Optional[str] = Field(default=None, validation_alias=ENV_FULL_HOST)
    private_key: Optional[str] = Field(default=None, validation_alias=ENV_PRIVATE_KEY)
    api_key: Optional[str] = Field(default=None, validation_alias=ENV_API_KEY)
    fee_limit: int = Field(default=DEFAULT_FEE_LIMIT, ge=0, validation_alias=ENV_FEE_LIMIT)
    confirmation_timeout: float = Field(
        default=DEFAULT_CONFIRMATION_TIMEOUT, ge=0, validation_alias=ENV_CONFIRMATION_TIMEOUT
    )
    poll_interval: float = Field(
        default=DEFAULT_POLL_INTERVAL, ge=0, validation_alias=ENV_POLL_INTERVAL
    )
    build_dir: Optional[Path] = Field(default=None, validation_alias=ENV_BUILD_DIR)
    min_balance: Optional[int] = Field(default=None, ge=0, validation_alias=ENV_MIN_BALANCE)

    @field_validator("network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        if value not in NETWORK_CONFIG:
            raise ValueError(
                f"Unknown network '{value}'. Expected one of: {', '.join(NETWORK_CONFIG)}"
            )
        return value

    @field_validator(
        "fee_limit", "confirmation_timeout", "poll_interval", "min_balance", mode="before"
    )
    @classmethod
    def _plain_number(cls, value: Any, info: ValidationInfo) -> Any:
        # Allow 1_000_000 style grouping
        if isinstance(value, str):
            value = value.strip().replace("_", "")
            if not value:
                return cls.model_fields[info.field_name].default
        return value

    @model_validator(mode="after")
    def _fill_defaults(self) -> "Settings":
        host = self.full_host or NETWORK_CONFIG[self.network]["full_host"]
        self.full_host = host.rstrip("/")
        if self.build_dir is None:
            self.build_dir = get_default_build_dir()
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Read settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Settings with defaults for anything unset or blank

        Raises:
            ConfigurationError: If the network is unknown or a number is malformed
        """
        values: Dict[str, str] = {}
        if environ is not None:
            for name in _ENV_NAMES.values():
                raw = environ.get(name)
                if raw is not None and raw.strip():
                    values[name] = raw

        try:
            return cls(**values)
        except ValidationError as e:
            problems = "; ".join(_describe_error(error) for error in e.errors())
            raise ConfigurationError(f"Invalid settings: {problems}") from e

    def require_private_key(self) -> str:
        """
        Get the deployer key.

        Raises:
            MissingConfigurationError: If no key is configured
        """
        if not self.private_key:
            raise MissingConfigurationError(
                f"Deployer private key required: set ${ENV_PRIVATE_KEY}"
            )
        return self.private_key


# field name -> environment variable
_ENV_NAMES = {
    name: field.validation_alias for name, field in Settings.model_fields.items()
}


def _describe_error(error: Dict[str, Any]) -> str:
    location = str(error["loc"][0]) if error["loc"] else "settings"
    name = _ENV_NAMES.get(location, location)
    return f"${name}: {error['msg']}"

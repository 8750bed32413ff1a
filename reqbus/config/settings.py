"""Dispatcher settings loaded from the environment."""

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from reqbus.core.log_categories import CONFIG
from reqbus.core.logging import get_logger

from .logging import LoggingSettings


__all__ = ["MediatorSettings", "ConfigurationError", "get_settings"]


logger = get_logger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class MediatorSettings(BaseSettings):
    """
    Configuration settings for a reqbus dispatcher.

    Settings are loaded from environment variables prefixed with ``REQBUS_``
    and from a ``.env`` file. Nested fields use ``__`` as delimiter, e.g.
    ``REQBUS_LOGGING__LEVEL=DEBUG``.
    """

    model_config = SettingsConfigDict(
        env_prefix="REQBUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    strict_registration: bool = Field(
        default=False,
        description=(
            "Reject a second handler for the same request/response pair instead "
            "of letting the last registration win"
        ),
    )

    freeze_registry: bool = Field(
        default=True,
        description="Freeze the registry when a dispatcher is created from it",
    )

    enable_logging_behavior: bool = Field(
        default=False,
        description=(
            "Prepend the built-in LoggingBehavior as the outermost open behavior"
        ),
    )

    default_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description=(
            "When set, append an open TimeoutBehavior bounding every handler call "
            "to this many seconds"
        ),
    )


def get_settings(**overrides: object) -> MediatorSettings:
    """Load settings from the environment, applying keyword overrides.

    Raises:
        ConfigurationError: If the environment holds invalid values
    """
    try:
        settings = MediatorSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as e:
        logger.error("settings_invalid", error=str(e), category=CONFIG)
        raise ConfigurationError(f"Invalid reqbus configuration: {e}") from e
    logger.debug(
        "settings_loaded",
        strict_registration=settings.strict_registration,
        freeze_registry=settings.freeze_registry,
        category=CONFIG,
    )
    return settings

"""Helpers wiring settings, registry and dispatcher together."""

from reqbus.behaviors import LoggingBehavior, TimeoutBehavior
from reqbus.config.settings import MediatorSettings, get_settings
from reqbus.core.ambient import AmbientCancellationProvider
from reqbus.core.log_categories import CONFIG
from reqbus.core.logging import get_logger, setup_logging
from reqbus.dispatcher import Dispatcher
from reqbus.registry import HandlerRegistry


logger = get_logger(__name__)


def configure_logging(settings: MediatorSettings | None = None) -> None:
    """Apply the logging section of ``settings`` to structlog."""
    settings = settings or get_settings()
    setup_logging(
        json_logs=settings.logging.format == "json",
        log_level_name=settings.logging.level,
        show_path=settings.logging.show_path,
        console_width=settings.logging.console_width,
    )


def create_registry(settings: MediatorSettings | None = None) -> HandlerRegistry:
    """Create an empty registry honoring ``strict_registration``."""
    settings = settings or get_settings()
    return HandlerRegistry(strict=settings.strict_registration)


def create_dispatcher(
    registry: HandlerRegistry,
    settings: MediatorSettings | None = None,
    ambient: AmbientCancellationProvider | None = None,
) -> Dispatcher:
    """Create a dispatcher over a populated registry.

    Depending on ``settings`` this registers the built-in LoggingBehavior as
    the outermost open behavior, registers a TimeoutBehavior as the innermost
    open behavior, and freezes the registry.
    """
    settings = settings or get_settings()

    if settings.enable_logging_behavior:
        registry.register_behavior(LoggingBehavior(), prepend=True)
    if settings.default_timeout_seconds is not None:
        registry.register_behavior(TimeoutBehavior(settings.default_timeout_seconds))
    if settings.freeze_registry:
        registry.freeze()

    logger.info(
        "dispatcher_created",
        handlers=len(registry),
        logging_behavior=settings.enable_logging_behavior,
        timeout_seconds=settings.default_timeout_seconds,
        frozen=registry.is_frozen,
        category=CONFIG,
    )
    return Dispatcher(registry, ambient=ambient)

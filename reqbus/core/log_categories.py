"""Log categories for structured logging and filtering."""

from enum import Enum


class LogCategory(str, Enum):
    """Log categories attached to every reqbus log event as ``category``."""

    DISPATCH = "dispatch"  # Send lifecycle: resolve, chain, invoke, validate
    REGISTRY = "registry"  # Handler and behavior registration
    PIPELINE = "pipeline"  # Built-in behavior activity
    CANCELLATION = "cancellation"  # Token cancellation and ambient scoping
    CONFIG = "config"  # Settings loading and validation
    DEFAULT = "general"  # Uncategorized logs


DISPATCH = LogCategory.DISPATCH.value
REGISTRY = LogCategory.REGISTRY.value
PIPELINE = LogCategory.PIPELINE.value
CANCELLATION = LogCategory.CANCELLATION.value
CONFIG = LogCategory.CONFIG.value
DEFAULT = LogCategory.DEFAULT.value

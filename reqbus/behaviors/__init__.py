"""Built-in pipeline behaviors."""

from .logging import LoggingBehavior
from .retry import RetryBehavior
from .timeout import TimeoutBehavior
from .validation import ValidationBehavior


__all__ = ["LoggingBehavior", "RetryBehavior", "TimeoutBehavior", "ValidationBehavior"]

"""Bounded retry behavior."""

import asyncio
from typing import Any

import structlog

from reqbus.core.cancellation import CancellationToken
from reqbus.core.errors import MediatorError
from reqbus.core.interfaces import Continuation, PipelineBehavior
from reqbus.core.log_categories import PIPELINE


logger = structlog.get_logger(__name__)


class RetryBehavior(PipelineBehavior[Any, Any]):
    """Re-runs the rest of the chain when it raises a retryable exception.

    Cancellation is checked before every retry. Library errors
    (:class:`MediatorError` and subclasses such as null results, validation
    failures and cancellation) are deterministic and are never retried.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        delay_seconds: float = 0.0,
        retry_on: tuple[type[Exception], ...] = (Exception,),
    ):
        """Initialize retry behavior.

        Args:
            max_attempts: Total number of attempts, including the first
            delay_seconds: Fixed pause between attempts
            retry_on: Exception types that trigger another attempt
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self.retry_on = retry_on

    async def handle(
        self,
        request: Any,
        cancellation_token: CancellationToken,
        next_: Continuation[Any],
    ) -> Any:
        attempt = 1
        while True:
            try:
                return await next_()
            except MediatorError:
                raise
            except self.retry_on as e:
                if attempt >= self.max_attempts:
                    raise
                logger.warning(
                    "request_retrying",
                    request_type=type(request).__qualname__,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=str(e),
                    category=PIPELINE,
                )

            cancellation_token.raise_if_cancelled()
            if self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)
            attempt += 1

"""Deadline behavior racing the rest of the chain against a timeout."""

import asyncio
from typing import Any

import structlog

from reqbus.core.cancellation import CancellationToken
from reqbus.core.interfaces import Continuation, PipelineBehavior
from reqbus.core.log_categories import PIPELINE


logger = structlog.get_logger(__name__)


class TimeoutBehavior(PipelineBehavior[Any, Any]):
    """Fails the call with :class:`TimeoutError` after ``seconds``.

    Unlike the cooperative token, the deadline cancels the awaiting task, so
    the inner links see :class:`asyncio.CancelledError` at their next
    suspension point.
    """

    def __init__(self, seconds: float):
        if seconds <= 0:
            raise ValueError(f"Timeout must be positive, got {seconds}")
        self.seconds = seconds

    async def handle(
        self,
        request: Any,
        cancellation_token: CancellationToken,
        next_: Continuation[Any],
    ) -> Any:
        try:
            async with asyncio.timeout(self.seconds):
                return await next_()
        except TimeoutError:
            logger.warning(
                "request_timed_out",
                request_type=type(request).__qualname__,
                timeout_seconds=self.seconds,
                category=PIPELINE,
            )
            raise

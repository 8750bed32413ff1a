"""Structured logging behavior."""

import time
from typing import Any

import structlog

from reqbus.core.cancellation import CancellationToken
from reqbus.core.interfaces import Continuation, PipelineBehavior
from reqbus.core.log_categories import PIPELINE


class LoggingBehavior(PipelineBehavior[Any, Any]):
    """Logs the start, completion and failure of every call it wraps."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None):
        """Initialize logging behavior.

        Args:
            logger: Optional structlog logger instance. If None, creates a new one.
        """
        self.logger = logger or structlog.get_logger(__name__)

    async def handle(
        self,
        request: Any,
        cancellation_token: CancellationToken,
        next_: Continuation[Any],
    ) -> Any:
        request_type = type(request).__qualname__
        self.logger.info(
            "request_started", request_type=request_type, category=PIPELINE
        )
        start = time.perf_counter()
        try:
            response = await next_()
        except Exception as e:
            log_data: dict[str, Any] = {
                "request_type": request_type,
                "duration_ms": round((time.perf_counter() - start) * 1000, 3),
                "error": {"type": type(e).__name__, "message": str(e)},
                "cancelled": cancellation_token.is_cancelled,
                "category": PIPELINE,
            }
            if e.__cause__ is not None:
                log_data["error"]["cause"] = {
                    "type": type(e.__cause__).__name__,
                    "message": str(e.__cause__),
                }
            self.logger.error("request_failed", **log_data)
            raise

        self.logger.info(
            "request_completed",
            request_type=request_type,
            response_type=type(response).__qualname__,
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
            category=PIPELINE,
        )
        return response

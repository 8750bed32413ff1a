"""The public dispatch entry point.

This module provides the Dispatcher class, which sends a request through its
behavior chain to its handler and returns the handler's response. Every send
is independent: the dispatcher keeps no mutable state between calls, so one
instance may serve any number of concurrent tasks.
"""

import time
from typing import Any, TypeVar

import structlog

from reqbus.core.ambient import AmbientCancellationProvider, NullAmbientProvider
from reqbus.core.cancellation import CancellationToken, effective_token
from reqbus.core.errors import HandlerNotFoundError, NullResultError
from reqbus.core.interfaces import Request
from reqbus.core.log_categories import DISPATCH
from reqbus.pipeline import build_chain
from reqbus.registry import HandlerRegistry


logger = structlog.get_logger(__name__)

TResponse = TypeVar("TResponse")


def _unwrap(error: BaseException) -> BaseException:
    """Strip single-member exception groups down to the exception they carry."""
    while isinstance(error, BaseExceptionGroup) and len(error.exceptions) == 1:
        error = error.exceptions[0]
    return error


class Dispatcher:
    """Sends requests to their handlers through the registered behaviors.

    The dispatch of one call runs Resolving -> Chaining -> Invoking ->
    Validating and then succeeds or fails. It never retries and never
    recovers from a failure locally.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        ambient: AmbientCancellationProvider | None = None,
    ):
        """Initialize the dispatcher.

        Args:
            registry: Populated handler registry
            ambient: Source of the surrounding operation's cancellation token
        """
        self._registry = registry
        self._ambient = ambient or NullAmbientProvider()

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    async def send(
        self,
        request: Request[TResponse],
        cancellation_token: CancellationToken | None = None,
    ) -> TResponse:
        """Dispatch ``request`` and return its handler's response.

        When an ambient token is in scope it is the token every link observes,
        and ``cancellation_token`` is ignored.

        Args:
            request: The request to dispatch
            cancellation_token: Caller-supplied token, defaults to one that is
                never cancelled

        Returns:
            The response produced by the behavior chain

        Raises:
            HandlerNotFoundError: If no handler is registered for the request
            NullResultError: If any link of the chain produced None
            Exception: Anything raised by a handler or behavior, unchanged
        """
        explicit = (
            cancellation_token
            if cancellation_token is not None
            else CancellationToken.none()
        )
        token = effective_token(self._ambient.current(), explicit)

        request_type = type(request)
        response_type = getattr(request_type, "response_type", None)
        log = logger.bind(request_type=request_type.__qualname__, category=DISPATCH)

        handler = self._registry.find_handler(request_type, response_type)
        if handler is None:
            log.warning("handler_not_found", response_type=repr(response_type))
            raise HandlerNotFoundError(request_type, response_type)

        behaviors = self._registry.resolve_behaviors(request_type, response_type)
        log.debug(
            "dispatch_started",
            handler=type(handler).__qualname__,
            behaviors=[type(b).__qualname__ for b in behaviors],
            ambient_token=token is not explicit,
        )

        pipeline = build_chain(handler, behaviors, request, token)

        start = time.perf_counter()
        failure: BaseException | None = None
        try:
            result: Any = await pipeline()
        except BaseExceptionGroup as group:
            failure = _unwrap(group)
            log.debug("dispatch_failed", error_type=type(failure).__name__)
            if failure is group:
                raise
        except BaseException as e:
            log.debug("dispatch_failed", error_type=type(e).__name__)
            raise

        if failure is not None:
            # Raised outside the except block so the group is not attached as
            # __context__ and the inner exception keeps its own cause chain.
            raise failure

        if result is None:
            raise NullResultError("pipeline", request_type)

        log.debug(
            "dispatch_completed",
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
        )
        return result  # type: ignore[no-any-return]

"""Providers for the ambient cancellation token of the surrounding operation."""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Protocol, runtime_checkable

import structlog

from reqbus.core.cancellation import CancellationToken
from reqbus.core.log_categories import CANCELLATION


logger = structlog.get_logger(__name__)


@runtime_checkable
class AmbientCancellationProvider(Protocol):
    """Capability returning the current ambient cancellation token, if any."""

    def current(self) -> CancellationToken | None:
        """Return the ambient token, or None when no operation is in scope."""
        ...


class NullAmbientProvider:
    """Provider used when no ambient operation ever bounds a call."""

    def current(self) -> CancellationToken | None:
        return None


class ContextVarAmbientProvider:
    """Task-local ambient token backed by a :class:`~contextvars.ContextVar`.

    Each asyncio task runs in a copy of its parent's context, so an ambient
    token activated in one request never leaks into a concurrent one.
    """

    def __init__(self, name: str = "reqbus_ambient_token") -> None:
        self._var: ContextVar[CancellationToken | None] = ContextVar(
            name, default=None
        )

    def current(self) -> CancellationToken | None:
        return self._var.get()

    @contextmanager
    def activate(self, token: CancellationToken) -> Iterator[CancellationToken]:
        """Make ``token`` the ambient token for the enclosed block."""
        reset_token = self._var.set(token)
        logger.debug(
            "ambient_token_activated", token=repr(token), category=CANCELLATION
        )
        try:
            yield token
        finally:
            self._var.reset(reset_token)


__all__ = [
    "AmbientCancellationProvider",
    "NullAmbientProvider",
    "ContextVarAmbientProvider",
]

"""Cooperative cancellation tokens and the per-call token arbiter.

Cancellation is advisory: the dispatcher never interrupts a running handler.
Handlers and behaviors poll :attr:`CancellationToken.is_cancelled`, call
:meth:`CancellationToken.raise_if_cancelled`, or await
:meth:`CancellationToken.wait` to react promptly.
"""

import asyncio
from collections.abc import Callable

import structlog

from reqbus.core.errors import OperationCancelledError
from reqbus.core.log_categories import CANCELLATION


logger = structlog.get_logger(__name__)


class CancellationToken:
    """Cooperative cancellation signal shared by every link of one call.

    Tokens are bound to the event loop they are awaited on and are not safe to
    cancel from other threads; use ``loop.call_soon_threadsafe(token.cancel)``.
    """

    def __init__(self, *, can_be_cancelled: bool = True) -> None:
        self._can_be_cancelled = can_be_cancelled
        self._cancelled = False
        self._reason: str | None = None
        self._callbacks: list[Callable[["CancellationToken"], None]] = []
        self._event = asyncio.Event()

    @classmethod
    def none(cls) -> "CancellationToken":
        """Return the shared token that is never cancelled."""
        return _NONE

    @classmethod
    def cancelled(cls, reason: str | None = None) -> "CancellationToken":
        """Create a token that is already cancelled."""
        token = cls()
        token.cancel(reason)
        return token

    @classmethod
    def linked(cls, *parents: "CancellationToken") -> "CancellationToken":
        """Create a token that is cancelled as soon as any parent is."""
        child = cls()
        for parent in parents:
            parent.register(lambda p: child.cancel(p.reason))
        return child

    @property
    def can_be_cancelled(self) -> bool:
        return self._can_be_cancelled

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation. Repeated calls are no-ops."""
        if not self._can_be_cancelled:
            raise RuntimeError("CancellationToken.none() cannot be cancelled")
        if self._cancelled:
            return

        self._cancelled = True
        self._reason = reason
        self._event.set()
        logger.debug("token_cancelled", reason=reason, category=CANCELLATION)

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logger.error(
                    "cancellation_callback_failed",
                    callback=getattr(callback, "__qualname__", repr(callback)),
                    error=str(e),
                    exc_info=e,
                    category=CANCELLATION,
                )

    def register(
        self, callback: Callable[["CancellationToken"], None]
    ) -> Callable[[], None]:
        """Run ``callback(token)`` on cancellation.

        The callback runs immediately if the token is already cancelled.

        Returns:
            A function that removes the callback again
        """
        if self._cancelled:
            callback(self)
            return lambda: None
        if not self._can_be_cancelled:
            return lambda: None

        self._callbacks.append(callback)

        def unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unregister

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelledError` if cancellation was requested."""
        if self._cancelled:
            raise OperationCancelledError(
                self._reason or "Operation was cancelled"
            )

    async def wait(self) -> None:
        """Block until the token is cancelled.

        For :meth:`none` this never returns. It waits on a future of the running
        loop, since the shared token outlives any single event loop.
        """
        if not self._can_be_cancelled:
            await asyncio.get_running_loop().create_future()
        await self._event.wait()

    def __repr__(self) -> str:
        if not self._can_be_cancelled:
            return "CancellationToken.none()"
        state = "cancelled" if self._cancelled else "active"
        return f"<CancellationToken {state} at {id(self):#x}>"


_NONE = CancellationToken(can_be_cancelled=False)


def effective_token(
    ambient: CancellationToken | None, explicit: CancellationToken
) -> CancellationToken:
    """Pick the token a call observes.

    The ambient token bounds the call whenever one exists, and the explicit
    token is then ignored. Without an ambient token the explicit token is
    returned unchanged.
    """
    if ambient is not None:
        return ambient
    return explicit


__all__ = ["CancellationToken", "effective_token"]

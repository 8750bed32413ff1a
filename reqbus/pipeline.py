"""Construction of the behavior chain around a handler."""

import inspect
from collections.abc import Sequence
from typing import Any

from reqbus.core.cancellation import CancellationToken
from reqbus.core.errors import NullResultError
from reqbus.core.interfaces import Continuation


__all__ = ["build_chain"]


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


def _link_name(component: Any) -> str:
    return type(component).__qualname__


def _handler_link(
    handler: Any, request: Any, token: CancellationToken
) -> Continuation[Any]:
    async def invoke_handler() -> Any:
        result = await _resolve(handler.handle(request, token))
        if result is None:
            raise NullResultError(_link_name(handler), type(request))
        return result

    return invoke_handler


def _behavior_link(
    behavior: Any,
    next_: Continuation[Any],
    request: Any,
    token: CancellationToken,
) -> Continuation[Any]:
    async def invoke_behavior() -> Any:
        result = await _resolve(behavior.handle(request, token, next_))
        if result is None:
            raise NullResultError(_link_name(behavior), type(request))
        return result

    return invoke_behavior


def build_chain(
    handler: Any,
    behaviors: Sequence[Any],
    request: Any,
    token: CancellationToken,
) -> Continuation[Any]:
    """Compose behaviors around ``handler`` into one zero-argument continuation.

    Behaviors wrap from last to first, so for ``[A, B, C]`` the continuation
    runs ``A(B(C(handler)))``: A sees the call first and finishes last.
    Every link, including the handler, fails with :class:`NullResultError` if
    it produces ``None``. Exceptions raised by a link pass through unchanged.

    The returned continuation and every ``next_`` passed to a behavior may be
    awaited more than once; each call runs the remaining chain again.
    """
    chain = _handler_link(handler, request, token)
    for behavior in reversed(behaviors):
        chain = _behavior_link(behavior, chain, request, token)
    return chain

"""Core interfaces for requests, handlers and pipeline behaviors.

A request class names its response type as its generic parameter::

    @dataclass(frozen=True)
    class GetUser(Request[User]):
        user_id: int

The response type is recorded on the class once, when the subclass is
defined, so dispatch never has to introspect generic arguments.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, Generic, TypeVar, get_args, get_origin

from reqbus.core.cancellation import CancellationToken


__all__ = [
    "Request",
    "RequestHandler",
    "PipelineBehavior",
    "Continuation",
]


TResponse = TypeVar("TResponse")
TRequest = TypeVar("TRequest", bound="Request[Any]")

Continuation = Callable[[], Awaitable[TResponse]]


class Request(Generic[TResponse]):
    """Base class for all requests.

    Subclasses should be immutable values (frozen dataclasses or frozen
    pydantic models). ``response_type`` is filled in from the generic
    parameter, or may be assigned explicitly on the subclass.
    """

    response_type: ClassVar[Any] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "response_type" in cls.__dict__:
            return
        for base in cls.__dict__.get("__orig_bases__", ()):
            origin = get_origin(base)
            if not (isinstance(origin, type) and issubclass(origin, Request)):
                continue
            args = get_args(base)
            if args and not isinstance(args[0], TypeVar):
                cls.response_type = args[0]
                return


class RequestHandler(ABC, Generic[TRequest, TResponse]):
    """The single authoritative computation for one request type.

    ``handle`` may be a coroutine function or a plain function.
    """

    @abstractmethod
    def handle(
        self, request: TRequest, cancellation_token: CancellationToken
    ) -> Awaitable[TResponse] | TResponse:
        """Compute the response for ``request``.

        Args:
            request: The request being dispatched
            cancellation_token: The effective token for this call

        Returns:
            The response, or an awaitable producing it
        """


class PipelineBehavior(ABC, Generic[TRequest, TResponse]):
    """Interceptor wrapping handler invocation.

    A behavior runs its "before" work, awaits ``next_`` to run the rest of
    the chain, then runs its "after" work. Not awaiting ``next_`` skips the
    handler entirely.
    """

    @abstractmethod
    def handle(
        self,
        request: TRequest,
        cancellation_token: CancellationToken,
        next_: Continuation[TResponse],
    ) -> Awaitable[TResponse] | TResponse:
        """Run this link of the chain."""

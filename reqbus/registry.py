"""Central registry of handlers and pipeline behaviors.

Registration happens once at startup; after :meth:`HandlerRegistry.freeze` the
registry is read-only and safe for any number of concurrent dispatchers.
"""

import threading
from dataclasses import dataclass
from typing import Any

import structlog

from reqbus.core.errors import (
    BehaviorContractViolation,
    DuplicateHandlerError,
    HandlerNotFoundError,
    RegistryFrozenError,
)
from reqbus.core.log_categories import REGISTRY


logger = structlog.get_logger(__name__)

HandlerKey = tuple[type, Any]


@dataclass(frozen=True)
class BehaviorRegistration:
    """One behavior entry; ``None`` for a type means "any"."""

    behavior: Any
    request_type: type | None
    response_type: Any

    @property
    def is_open(self) -> bool:
        return self.request_type is None

    def applies_to(self, request_type: type, response_type: Any) -> bool:
        if self.request_type is not None and self.request_type is not request_type:
            return False
        if self.response_type is not None and self.response_type != response_type:
            return False
        return True


def _name(obj: Any) -> str:
    tp = obj if isinstance(obj, type) else type(obj)
    return tp.__qualname__


def _require_handle(component: Any, kind: str) -> None:
    if not callable(getattr(component, "handle", None)):
        raise BehaviorContractViolation(
            f"{kind} {_name(component)} has no callable 'handle' method",
            details={"component": _name(component), "kind": kind},
        )


def _declared_response_type(request_type: type) -> Any:
    response_type = getattr(request_type, "response_type", None)
    if response_type is None:
        raise BehaviorContractViolation(
            f"{_name(request_type)} does not declare a response type; "
            "subclass Request[...] or pass response_type explicitly",
            details={"request_type": _name(request_type)},
        )
    return response_type


class HandlerRegistry:
    """Maps (request type, response type) to one handler and ordered behaviors.

    Lookup is exact on the pair. Registering a second handler for a pair
    replaces the first (last registration wins) unless ``strict`` is set, in
    which case :class:`DuplicateHandlerError` is raised instead.

    Behaviors are kept in registration order across open (all request types)
    and closed (one request type) entries and are never re-sorted. A behavior
    instance runs at most once per call, at its first matching position, even
    when registered both open and closed. Distinct instances are never merged.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict
        self._handlers: dict[HandlerKey, Any] = {}
        self._behaviors: list[BehaviorRegistration] = []
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Prevent further registration."""
        with self._lock:
            if self._frozen:
                return
            self._frozen = True
        logger.debug(
            "registry_frozen",
            handlers=len(self._handlers),
            behaviors=len(self._behaviors),
            category=REGISTRY,
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                "Cannot register handlers or behaviors after freeze()"
            )

    def register_handler(
        self,
        request_type: type,
        handler: Any,
        response_type: Any = None,
    ) -> None:
        """Register ``handler`` for ``request_type``.

        Args:
            request_type: Concrete request class handled
            handler: Object with a ``handle(request, cancellation_token)`` method
            response_type: Response type; defaults to the request's declared one

        Raises:
            BehaviorContractViolation: If the handler or request type is malformed
            DuplicateHandlerError: On a duplicate pair in strict mode
            RegistryFrozenError: If the registry is frozen
        """
        _require_handle(handler, "Handler")
        if response_type is None:
            response_type = _declared_response_type(request_type)
        key = (request_type, response_type)

        with self._lock:
            self._check_not_frozen()
            previous = self._handlers.get(key)
            if previous is not None:
                if self._strict:
                    raise DuplicateHandlerError(request_type, response_type)
                logger.warning(
                    "handler_replaced",
                    request_type=_name(request_type),
                    previous=_name(previous),
                    handler=_name(handler),
                    category=REGISTRY,
                )
            self._handlers[key] = handler

        logger.debug(
            "handler_registered",
            request_type=_name(request_type),
            handler=_name(handler),
            category=REGISTRY,
        )

    def register_behavior(
        self,
        behavior: Any,
        request_type: type | None = None,
        response_type: Any = None,
        *,
        prepend: bool = False,
    ) -> None:
        """Register a pipeline behavior.

        With no ``request_type`` the behavior is open and applies to every
        request, optionally narrowed to one ``response_type``. With a
        ``request_type`` it applies to that request only.

        Args:
            behavior: Object with a
                ``handle(request, cancellation_token, next_)`` method
            request_type: Request class this behavior is specialized for
            response_type: Response type filter; closed entries default to the
                request's declared response type
            prepend: Insert before all existing behaviors instead of after

        Raises:
            BehaviorContractViolation: If the behavior is malformed
            RegistryFrozenError: If the registry is frozen
        """
        _require_handle(behavior, "Behavior")
        if request_type is not None and response_type is None:
            response_type = _declared_response_type(request_type)
        registration = BehaviorRegistration(behavior, request_type, response_type)

        with self._lock:
            self._check_not_frozen()
            if prepend:
                self._behaviors.insert(0, registration)
            else:
                self._behaviors.append(registration)

        logger.debug(
            "behavior_registered",
            behavior=_name(behavior),
            request_type=_name(request_type) if request_type else None,
            open=registration.is_open,
            prepend=prepend,
            category=REGISTRY,
        )

    def find_handler(self, request_type: type, response_type: Any) -> Any | None:
        """Get the handler for a pair, or None."""
        return self._handlers.get((request_type, response_type))

    def resolve_handler(self, request_type: type, response_type: Any) -> Any:
        """Get the handler for a pair.

        Raises:
            HandlerNotFoundError: If no handler is registered for the pair
        """
        handler = self.find_handler(request_type, response_type)
        if handler is None:
            raise HandlerNotFoundError(request_type, response_type)
        return handler

    def resolve_behaviors(self, request_type: type, response_type: Any) -> list[Any]:
        """Get the behaviors for a pair in registration order (possibly empty)."""
        behaviors: list[Any] = []
        seen: set[int] = set()
        for registration in self._behaviors:
            if not registration.applies_to(request_type, response_type):
                continue
            if id(registration.behavior) in seen:
                continue
            seen.add(id(registration.behavior))
            behaviors.append(registration.behavior)
        return behaviors

    def registered_pairs(self) -> list[HandlerKey]:
        """Get every (request type, response type) pair with a handler."""
        return list(self._handlers)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

"""Exceptions raised by the reqbus dispatch core."""

from typing import Any


class MediatorError(Exception):
    """Base exception for reqbus errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "mediator_error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}


def _type_name(tp: object) -> str:
    return getattr(tp, "__qualname__", None) or getattr(tp, "__name__", repr(tp))


class HandlerNotFoundError(MediatorError):
    """No handler is registered for a (request type, response type) pair."""

    def __init__(self, request_type: type, response_type: object) -> None:
        super().__init__(
            message=(
                f"Handler not found for {_type_name(request_type)} "
                f"-> {_type_name(response_type)}"
            ),
            error_type="handler_not_found",
            details={
                "request_type": _type_name(request_type),
                "response_type": _type_name(response_type),
            },
        )
        self.request_type = request_type
        self.response_type = response_type


class NullResultError(MediatorError):
    """A handler or behavior produced ``None`` where a response was required."""

    def __init__(self, link: str, request_type: type) -> None:
        super().__init__(
            message=f"{link} returned no result for {_type_name(request_type)}",
            error_type="null_result",
            details={"link": link, "request_type": _type_name(request_type)},
        )
        self.link = link
        self.request_type = request_type


class BehaviorContractViolation(MediatorError):
    """A registered handler or behavior does not have the expected shape."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message, error_type="contract_violation", details=details
        )


class DuplicateHandlerError(MediatorError):
    """A second handler was registered for a pair under strict registration."""

    def __init__(self, request_type: type, response_type: object) -> None:
        super().__init__(
            message=(
                f"Handler already registered for {_type_name(request_type)} "
                f"-> {_type_name(response_type)}"
            ),
            error_type="duplicate_handler",
            details={
                "request_type": _type_name(request_type),
                "response_type": _type_name(response_type),
            },
        )


class RegistryFrozenError(MediatorError):
    """Registration was attempted after the registry was frozen."""

    def __init__(self, message: str = "Registry is frozen") -> None:
        super().__init__(message=message, error_type="registry_frozen")


class OperationCancelledError(MediatorError):
    """Raised when a cancellation token is observed as cancelled."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message=message, error_type="operation_cancelled")


class RequestValidationError(MediatorError):
    """A request failed validation before reaching its handler."""

    def __init__(self, request_type: type, errors: list[str]) -> None:
        super().__init__(
            message=f"{_type_name(request_type)} failed validation: "
            + "; ".join(errors),
            error_type="invalid_request_error",
            details={"errors": list(errors)},
        )
        self.errors = list(errors)


__all__ = [
    "MediatorError",
    "HandlerNotFoundError",
    "NullResultError",
    "BehaviorContractViolation",
    "DuplicateHandlerError",
    "RegistryFrozenError",
    "OperationCancelledError",
    "RequestValidationError",
]

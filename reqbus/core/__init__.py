"""Core building blocks: interfaces, cancellation, errors and logging."""

from .ambient import (
    AmbientCancellationProvider,
    ContextVarAmbientProvider,
    NullAmbientProvider,
)
from .cancellation import CancellationToken, effective_token
from .errors import (
    BehaviorContractViolation,
    DuplicateHandlerError,
    HandlerNotFoundError,
    MediatorError,
    NullResultError,
    OperationCancelledError,
    RegistryFrozenError,
    RequestValidationError,
)
from .interfaces import Continuation, PipelineBehavior, Request, RequestHandler


__all__ = [
    "AmbientCancellationProvider",
    "BehaviorContractViolation",
    "CancellationToken",
    "ContextVarAmbientProvider",
    "Continuation",
    "DuplicateHandlerError",
    "HandlerNotFoundError",
    "MediatorError",
    "NullAmbientProvider",
    "NullResultError",
    "OperationCancelledError",
    "PipelineBehavior",
    "RegistryFrozenError",
    "Request",
    "RequestHandler",
    "RequestValidationError",
    "effective_token",
]

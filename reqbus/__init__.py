"""In-process request/response dispatcher with ordered pipeline behaviors.

Key components:
- Request: typed request base carrying its response type
- RequestHandler / PipelineBehavior: handler and interceptor interfaces
- HandlerRegistry: (request type, response type) -> handler and behaviors
- Dispatcher: public ``send`` entry point
- CancellationToken: cooperative cancellation shared by one call's links
"""

from ._version import __version__
from .core import (
    AmbientCancellationProvider,
    BehaviorContractViolation,
    CancellationToken,
    ContextVarAmbientProvider,
    Continuation,
    DuplicateHandlerError,
    HandlerNotFoundError,
    MediatorError,
    NullAmbientProvider,
    NullResultError,
    OperationCancelledError,
    PipelineBehavior,
    RegistryFrozenError,
    Request,
    RequestHandler,
    RequestValidationError,
    effective_token,
)
from .dispatcher import Dispatcher
from .pipeline import build_chain
from .registry import HandlerRegistry


__all__ = [
    "__version__",
    "AmbientCancellationProvider",
    "BehaviorContractViolation",
    "CancellationToken",
    "ContextVarAmbientProvider",
    "Continuation",
    "Dispatcher",
    "DuplicateHandlerError",
    "HandlerNotFoundError",
    "HandlerRegistry",
    "MediatorError",
    "NullAmbientProvider",
    "NullResultError",
    "OperationCancelledError",
    "PipelineBehavior",
    "RegistryFrozenError",
    "Request",
    "RequestHandler",
    "RequestValidationError",
    "build_chain",
    "effective_token",
]

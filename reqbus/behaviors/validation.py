"""Validation behavior that short-circuits invalid requests."""

from collections.abc import Callable, Iterable, Sequence
from typing import Any

import structlog

from reqbus.core.cancellation import CancellationToken
from reqbus.core.errors import RequestValidationError
from reqbus.core.interfaces import Continuation, PipelineBehavior
from reqbus.core.log_categories import PIPELINE


logger = structlog.get_logger(__name__)

Validator = Callable[[Any], Iterable[str] | str | None]


class ValidationBehavior(PipelineBehavior[Any, Any]):
    """Runs validators and only calls the rest of the chain if all pass.

    A validator returns None (or an empty iterable) for a valid request, or
    one or more error messages.
    """

    def __init__(self, validators: Sequence[Validator]):
        self.validators = list(validators)

    def validate(self, request: Any) -> list[str]:
        errors: list[str] = []
        for validator in self.validators:
            outcome = validator(request)
            if outcome is None:
                continue
            if isinstance(outcome, str):
                errors.append(outcome)
            else:
                errors.extend(outcome)
        return errors

    async def handle(
        self,
        request: Any,
        cancellation_token: CancellationToken,
        next_: Continuation[Any],
    ) -> Any:
        errors = self.validate(request)
        if errors:
            logger.info(
                "request_rejected",
                request_type=type(request).__qualname__,
                errors=errors,
                category=PIPELINE,
            )
            raise RequestValidationError(type(request), errors)
        return await next_()

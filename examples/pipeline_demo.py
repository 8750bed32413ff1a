#!/usr/bin/env python3
"""Example dispatching requests through logging, validation and retry behaviors."""

import asyncio
import random
from dataclasses import dataclass

from reqbus import CancellationToken, Request, RequestHandler
from reqbus.behaviors import RetryBehavior, ValidationBehavior
from reqbus.bootstrap import configure_logging, create_dispatcher, create_registry
from reqbus.config import MediatorSettings


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float


@dataclass(frozen=True)
class GetQuote(Request[Quote]):
    symbol: str


class GetQuoteHandler(RequestHandler[GetQuote, Quote]):
    """Pretends to call a flaky upstream price service."""

    async def handle(
        self, request: GetQuote, cancellation_token: CancellationToken
    ) -> Quote:
        cancellation_token.raise_if_cancelled()
        await asyncio.sleep(0.01)
        if random.random() < 0.5:
            raise ConnectionError("upstream unavailable")
        return Quote(request.symbol, round(random.uniform(10, 500), 2))


def symbol_is_upper(request: GetQuote) -> str | None:
    if not request.symbol.isupper():
        return "symbol must be upper case"
    return None


async def main() -> None:
    settings = MediatorSettings(enable_logging_behavior=True, default_timeout_seconds=2)
    configure_logging(settings)

    registry = create_registry(settings)
    registry.register_handler(GetQuote, GetQuoteHandler())
    registry.register_behavior(ValidationBehavior([symbol_is_upper]), GetQuote)
    registry.register_behavior(
        RetryBehavior(max_attempts=5, delay_seconds=0.05, retry_on=(ConnectionError,))
    )
    dispatcher = create_dispatcher(registry, settings)

    quote = await dispatcher.send(GetQuote("ACME"))
    print(f"{quote.symbol}: {quote.price}")


if __name__ == "__main__":
    asyncio.run(main())

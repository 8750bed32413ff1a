"""ASGI middleware exposing the inbound request's abort signal as ambient token."""

from collections.abc import MutableMapping
from typing import Any

from starlette.types import ASGIApp, Message, Receive, Send

from reqbus.core.ambient import ContextVarAmbientProvider
from reqbus.core.cancellation import CancellationToken
from reqbus.core.log_categories import CANCELLATION
from reqbus.core.logging import get_logger


logger = get_logger(__name__)

SCOPE_EXTENSION_KEY = "reqbus.cancellation_token"


class RequestAbortedMiddleware:
    """Binds one cancellation token to each HTTP request.

    The token is activated on ``provider`` for the lifetime of the request, so
    every ``Dispatcher.send`` made while handling it observes this token. It
    is cancelled when the server reports ``http.disconnect``, which is seen
    whenever the application reads from ``receive`` (for example through
    ``Request.is_disconnected()``).
    """

    def __init__(self, app: ASGIApp, provider: ContextVarAmbientProvider):
        """Initialize the middleware.

        Args:
            app: The ASGI application
            provider: Ambient provider shared with the dispatcher
        """
        self.app = app
        self.provider = provider

    async def __call__(
        self, scope: MutableMapping[str, Any], receive: Receive, send: Send
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        token = CancellationToken()
        path = scope.get("path")

        async def receive_with_abort() -> Message:
            message = await receive()
            if message["type"] == "http.disconnect" and not token.is_cancelled:
                logger.debug("client_disconnected", path=path, category=CANCELLATION)
                token.cancel("client disconnected")
            return message

        if "extensions" not in scope or scope["extensions"] is None:
            scope["extensions"] = {}
        scope["extensions"][SCOPE_EXTENSION_KEY] = token

        with self.provider.activate(token):
            await self.app(scope, receive_with_abort, send)

"""Tests for Dispatcher.send."""

import pytest

from reqbus import (
    CancellationToken,
    ContextVarAmbientProvider,
    Dispatcher,
    HandlerNotFoundError,
    HandlerRegistry,
    NullResultError,
)
from tests.helpers.fakes import (
    AddHandler,
    AddRequest,
    ApplicationError,
    BaseHandler,
    CaptureTokenBehavior,
    CaptureTokenHandler,
    ChainedExceptionHandler,
    DummyHandler,
    DummyRequest,
    ExceptionGroupBehavior,
    ExceptionHandler,
    ExceptionRequest,
    NullBehavior,
    NullResponseHandler,
    NullResponseRequest,
    PassThroughBehavior,
    RootCause,
    ShortCircuitBehavior,
    SyncHandler,
    TaskGroupBehavior,
    UnregisteredRequest,
    WrapBehavior,
)


@pytest.mark.unit
class TestSend:
    """Test the basic request/response contract."""

    async def test_returns_handler_response(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that a handler without behaviors returns its value unchanged."""
        registry.register_handler(DummyRequest, DummyHandler())

        assert await dispatcher.send(DummyRequest()) == "Hello Mediator"

    async def test_response_typed_by_request(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that non-string responses flow through unchanged."""
        registry.register_handler(AddRequest, AddHandler())

        assert await dispatcher.send(AddRequest(2, 3)) == 5

    async def test_sync_handler_is_supported(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that a handler with a plain handle method works."""
        registry.register_handler(DummyRequest, SyncHandler())

        assert await dispatcher.send(DummyRequest()) == "sync"

    async def test_repeated_sends_are_idempotent(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that equal inputs give equal outputs across calls."""
        registry.register_handler(DummyRequest, BaseHandler())
        registry.register_behavior(WrapBehavior("A"))

        first = await dispatcher.send(DummyRequest())
        second = await dispatcher.send(DummyRequest())

        assert first == second == "A(H)"

    async def test_works_without_ambient_provider(self) -> None:
        """Test that the dispatcher defaults to no ambient token."""
        registry = HandlerRegistry()
        handler = CaptureTokenHandler()
        registry.register_handler(DummyRequest, handler)
        token = CancellationToken()

        await Dispatcher(registry).send(DummyRequest(), token)

        assert handler.captured is token


@pytest.mark.unit
class TestBehaviorChain:
    """Test behavior ordering as seen through the dispatcher."""

    async def test_registration_order_is_nesting_order(
        self, registry: HandlerRegistry, dispatcher: Dispatcher, call_log: list[str]
    ) -> None:
        """Test that [A, B, C] nests as A(B(C(H)))."""
        registry.register_handler(DummyRequest, BaseHandler(call_log))
        for name in ("A", "B", "C"):
            registry.register_behavior(WrapBehavior(name, call_log), DummyRequest)

        result = await dispatcher.send(DummyRequest())

        assert result == "A(B(C(H)))"
        assert call_log == [
            "A:enter",
            "B:enter",
            "C:enter",
            "H",
            "C:exit",
            "B:exit",
            "A:exit",
        ]

    async def test_open_and_closed_behaviors_keep_registration_order(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that open and closed entries interleave by registration order."""
        registry.register_handler(DummyRequest, BaseHandler())
        registry.register_behavior(WrapBehavior("open1"))
        registry.register_behavior(WrapBehavior("closed"), DummyRequest)
        registry.register_behavior(WrapBehavior("open2"))

        assert await dispatcher.send(DummyRequest()) == "open1(closed(open2(H)))"

    async def test_pass_through_behavior(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that a sync behavior returning next_() defers to the handler."""
        registry.register_handler(DummyRequest, DummyHandler())
        registry.register_behavior(PassThroughBehavior())

        assert await dispatcher.send(DummyRequest()) == "Hello Mediator"

    async def test_short_circuit_skips_handler(
        self, registry: HandlerRegistry, dispatcher: Dispatcher, call_log: list[str]
    ) -> None:
        """Test that a behavior not calling next_ prevents the handler call."""
        registry.register_handler(DummyRequest, BaseHandler(call_log))
        registry.register_behavior(WrapBehavior("A", call_log))
        registry.register_behavior(ShortCircuitBehavior("cached"))

        assert await dispatcher.send(DummyRequest()) == "A(cached)"
        assert "H" not in call_log


@pytest.mark.unit
class TestHandlerNotFound:
    async def test_unregistered_request_fails(self, dispatcher: Dispatcher) -> None:
        """Test that an unregistered request type raises HandlerNotFoundError."""
        with pytest.raises(HandlerNotFoundError) as exc_info:
            await dispatcher.send(UnregisteredRequest())

        assert exc_info.value.request_type is UnregisteredRequest
        assert exc_info.value.response_type is str

    async def test_no_behavior_runs_when_handler_missing(
        self, registry: HandlerRegistry, dispatcher: Dispatcher, call_log: list[str]
    ) -> None:
        """Test that behaviors are never invoked for an unregistered request."""
        registry.register_handler(DummyRequest, BaseHandler())
        registry.register_behavior(WrapBehavior("A", call_log))

        with pytest.raises(HandlerNotFoundError):
            await dispatcher.send(UnregisteredRequest())

        assert call_log == []

    async def test_lookup_is_exact_on_type(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that a subclass request does not fall back to its base handler."""

        class SpecialDummyRequest(DummyRequest):
            pass

        registry.register_handler(DummyRequest, DummyHandler())

        with pytest.raises(HandlerNotFoundError):
            await dispatcher.send(SpecialDummyRequest())


@pytest.mark.unit
class TestNullResult:
    async def test_handler_returning_none_fails(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that a None handler result raises NullResultError."""
        registry.register_handler(NullResponseRequest, NullResponseHandler())

        with pytest.raises(NullResultError) as exc_info:
            await dispatcher.send(NullResponseRequest())

        assert exc_info.value.link == "NullResponseHandler"

    @pytest.mark.parametrize("position", [0, 1, 2])
    async def test_behavior_returning_none_fails_at_any_position(
        self, registry: HandlerRegistry, dispatcher: Dispatcher, position: int
    ) -> None:
        """Test that a None result anywhere in the chain fails the call."""
        registry.register_handler(DummyRequest, BaseHandler())
        behaviors = [WrapBehavior("A"), WrapBehavior("B")]
        behaviors.insert(position, NullBehavior())
        for behavior in behaviors:
            registry.register_behavior(behavior)

        with pytest.raises(NullResultError) as exc_info:
            await dispatcher.send(DummyRequest())

        assert exc_info.value.link == "NullBehavior"

    async def test_wrapping_behaviors_do_not_mask_null_handler(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that NullResultError from the handler propagates through wrappers."""
        registry.register_handler(NullResponseRequest, NullResponseHandler())
        registry.register_behavior(PassThroughBehavior())

        with pytest.raises(NullResultError):
            await dispatcher.send(NullResponseRequest())


@pytest.mark.unit
class TestFailurePropagation:
    async def test_handler_exception_propagates_unchanged(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that the original exception type and message reach the caller."""
        registry.register_handler(ExceptionRequest, ExceptionHandler())
        registry.register_behavior(PassThroughBehavior())
        registry.register_behavior(WrapBehavior("A"))

        with pytest.raises(ApplicationError, match="^Handler error$"):
            await dispatcher.send(ExceptionRequest())

    async def test_single_exception_group_is_unwrapped(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that a TaskGroup wrapper never reaches the caller."""
        registry.register_handler(ExceptionRequest, ExceptionHandler())
        registry.register_behavior(TaskGroupBehavior())

        with pytest.raises(ApplicationError) as exc_info:
            await dispatcher.send(ExceptionRequest())

        assert type(exc_info.value) is ApplicationError
        assert str(exc_info.value) == "Handler error"

    async def test_unwrapped_exception_keeps_its_cause(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that unwrapping a TaskGroup failure preserves the cause chain."""
        registry.register_handler(ExceptionRequest, ChainedExceptionHandler())
        registry.register_behavior(TaskGroupBehavior())

        with pytest.raises(ApplicationError, match="^lookup failed$") as exc_info:
            await dispatcher.send(ExceptionRequest())

        assert isinstance(exc_info.value.__cause__, RootCause)
        assert str(exc_info.value.__cause__) == "db down"
        assert not isinstance(exc_info.value.__context__, BaseExceptionGroup)

    async def test_task_group_success_is_returned(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        registry.register_handler(DummyRequest, DummyHandler())
        registry.register_behavior(TaskGroupBehavior())

        assert await dispatcher.send(DummyRequest()) == "Hello Mediator"

    async def test_multi_member_exception_group_propagates(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        """Test that groups holding several failures are left intact."""
        registry.register_handler(DummyRequest, DummyHandler())
        registry.register_behavior(ExceptionGroupBehavior())

        with pytest.raises(ExceptionGroup) as exc_info:
            await dispatcher.send(DummyRequest())

        assert len(exc_info.value.exceptions) == 2


@pytest.mark.unit
class TestCancellationArbitration:
    async def test_ambient_token_wins_over_explicit(
        self,
        registry: HandlerRegistry,
        dispatcher: Dispatcher,
        ambient_provider: ContextVarAmbientProvider,
        explicit_token: CancellationToken,
    ) -> None:
        """Test that the handler observes the ambient token, not the explicit one."""
        handler = CaptureTokenHandler()
        registry.register_handler(DummyRequest, handler)
        ambient = CancellationToken()

        with ambient_provider.activate(ambient):
            await dispatcher.send(DummyRequest(), explicit_token)

        assert handler.captured is ambient
        assert handler.captured is not explicit_token

    async def test_explicit_token_used_without_ambient(
        self,
        registry: HandlerRegistry,
        dispatcher: Dispatcher,
        explicit_token: CancellationToken,
    ) -> None:
        """Test that the explicit token passes through unchanged."""
        handler = CaptureTokenHandler()
        registry.register_handler(DummyRequest, handler)

        await dispatcher.send(DummyRequest(), explicit_token)

        assert handler.captured is explicit_token

    async def test_default_token_is_never_cancelled(
        self, registry: HandlerRegistry, dispatcher: Dispatcher
    ) -> None:
        handler = CaptureTokenHandler()
        registry.register_handler(DummyRequest, handler)

        await dispatcher.send(DummyRequest())

        assert handler.captured is CancellationToken.none()
        assert handler.captured.can_be_cancelled is False

    async def test_all_links_observe_the_same_token(
        self,
        registry: HandlerRegistry,
        dispatcher: Dispatcher,
        ambient_provider: ContextVarAmbientProvider,
        explicit_token: CancellationToken,
    ) -> None:
        """Test that behaviors and handler share one resolved token."""
        handler = CaptureTokenHandler()
        outer = CaptureTokenBehavior()
        inner = CaptureTokenBehavior()
        registry.register_handler(DummyRequest, handler)
        registry.register_behavior(outer)
        registry.register_behavior(inner)
        ambient = CancellationToken()

        with ambient_provider.activate(ambient):
            await dispatcher.send(DummyRequest(), explicit_token)

        assert outer.captured is inner.captured is handler.captured is ambient

    async def test_cancelled_ambient_token_is_visible_to_handler(
        self,
        registry: HandlerRegistry,
        dispatcher: Dispatcher,
        ambient_provider: ContextVarAmbientProvider,
    ) -> None:
        handler = CaptureTokenHandler()
        registry.register_handler(DummyRequest, handler)

        with ambient_provider.activate(CancellationToken.cancelled("aborted")):
            await dispatcher.send(DummyRequest(), CancellationToken())

        assert handler.captured is not None
        assert handler.captured.is_cancelled
        assert handler.captured.reason == "aborted"

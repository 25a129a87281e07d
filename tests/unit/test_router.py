"""
Tests for ResultRouter: success emission, acknowledgments and failure
policy matching.
"""

import logging
from unittest.mock import Mock

import pytest

from starsocket import (
    ActionDescriptor, ActionKind, ActionOutcome, DispatcherConfig, EmissionPolicy,
    FailureKind, FieldError, ParameterParseError, ValidationFailure,
)
from starsocket.app import DEFAULT_ACK, ResultRouter

from ..conftest import Message, NotFound


class StricterValidationFailure(ValidationFailure):
    pass


def make_action(success=None, fail=None, fail_for=None, skip=False):
    return ActionDescriptor(
        kind=ActionKind.MESSAGE,
        handler=lambda: None,
        event_name="save",
        emit_on_success=success,
        emit_on_fail=fail,
        emit_on_fail_for=fail_for,
        skip_emit_on_empty_result=skip,
    )


def validation_failure(cls=ValidationFailure):
    return cls([FieldError(("text",), "String should have at least 1 character", "string_too_short", "")])


@pytest.fixture
def router(coercion, config):
    return ResultRouter(coercion, config)


class TestSuccess:

    @pytest.mark.asyncio
    async def test_emits_flattened_result(self, router, socket):
        action = make_action(success=EmissionPolicy("save/success"))
        await router.route(ActionOutcome.success(Message(id=1, text="hi", author="bob")), action, socket)

        assert socket.emitted == [("save/success", ({"id": 1, "text": "hi", "author": "bob", "priority": 0},))]

    @pytest.mark.asyncio
    async def test_policy_options_override_config(self, coercion, socket):
        router = ResultRouter(coercion, DispatcherConfig(model_to_plain_options={"exclude": {"priority"}}))
        message = Message(id=1, text="hi", author="bob")

        await router.route(ActionOutcome.success(message), make_action(success=EmissionPolicy("a")), socket)
        await router.route(ActionOutcome.success(message), make_action(success=EmissionPolicy("b", {"include": {"id"}})), socket)

        assert socket.events("a") == [({"id": 1, "text": "hi", "author": "bob"},)]
        assert socket.events("b") == [({"id": 1},)]

    @pytest.mark.asyncio
    async def test_without_transformer_result_is_sent_as_is(self, coercion, socket):
        router = ResultRouter(coercion, DispatcherConfig(use_transformer=False))
        message = Message(id=1, text="hi", author="bob")
        await router.route(ActionOutcome.success(message), make_action(success=EmissionPolicy("saved")), socket)

        assert socket.events("saved")[0][0] is message

    @pytest.mark.asyncio
    async def test_empty_result_emits_bare_event(self, router, socket):
        await router.route(ActionOutcome.success(None), make_action(success=EmissionPolicy("saved")), socket)
        assert socket.emitted == [("saved", ())]

    @pytest.mark.asyncio
    async def test_empty_result_skipped(self, router, socket):
        ack = Mock()
        await router.route(ActionOutcome.success(None), make_action(success=EmissionPolicy("saved"), skip=True), socket, ack)

        assert socket.emitted == []
        ack.assert_not_called()

    @pytest.mark.asyncio
    async def test_falsy_results_are_not_empty(self, router, socket):
        action = make_action(success=EmissionPolicy("count"), skip=True)
        await router.route(ActionOutcome.success(0), action, socket)
        await router.route(ActionOutcome.success(""), action, socket)
        assert socket.events("count") == [(0,), ("",)]

    @pytest.mark.asyncio
    async def test_ack_receives_result(self, router, socket):
        ack = Mock()
        await router.route(ActionOutcome.success({"ok": True}), make_action(), socket, ack)

        ack.assert_called_once_with({"ok": True})
        assert socket.emitted == []

    @pytest.mark.asyncio
    async def test_ack_receives_default_for_empty_result(self, router, socket):
        ack = Mock()
        await router.route(ActionOutcome.success(None), make_action(), socket, ack)
        ack.assert_called_once_with(DEFAULT_ACK)
        assert DEFAULT_ACK == "received"

    @pytest.mark.asyncio
    async def test_async_ack_is_awaited(self, router, socket):
        received = []

        async def ack(value):
            received.append(value)

        await router.route(ActionOutcome.success("done"), make_action(), socket, ack)
        assert received == ["done"]

    @pytest.mark.asyncio
    async def test_policy_takes_precedence_over_ack(self, router, socket):
        ack = Mock()
        await router.route(ActionOutcome.success("x"), make_action(success=EmissionPolicy("saved")), socket, ack)

        ack.assert_not_called()
        assert socket.events("saved") == [("x",)]

    @pytest.mark.asyncio
    async def test_nothing_happens_without_policy_or_ack(self, router, socket):
        await router.route(ActionOutcome.success("x"), make_action(), socket)
        assert socket.emitted == []


class TestFailure:

    @pytest.mark.asyncio
    async def test_fail_for_takes_precedence(self, router, socket):
        action = make_action(
            fail=EmissionPolicy("save/error"),
            fail_for=EmissionPolicy("save/validation_error", error_type=ValidationFailure),
        )
        await router.route(ActionOutcome.failure(validation_failure()), action, socket)

        assert socket.event_names == ["save/validation_error"]
        (payload,) = socket.events("save/validation_error")[0]
        assert payload["name"] == "ValidationFailure"
        assert payload["errors"][0]["loc"] == ("text",)

    @pytest.mark.asyncio
    async def test_unmatched_error_falls_back_to_fail(self, router, socket):
        action = make_action(
            fail=EmissionPolicy("save/error"),
            fail_for=EmissionPolicy("save/validation_error", error_type=ValidationFailure),
        )
        await router.route(ActionOutcome.failure(ParameterParseError("{oops")), action, socket)

        assert socket.event_names == ["save/error"]
        (payload,) = socket.events("save/error")[0]
        assert payload["name"] == "ParameterParseError"

    @pytest.mark.asyncio
    async def test_subclass_does_not_match(self, router, socket):
        action = make_action(
            fail=EmissionPolicy("save/error"),
            fail_for=EmissionPolicy("save/validation_error", error_type=ValidationFailure),
        )
        await router.route(ActionOutcome.failure(validation_failure(StricterValidationFailure)), action, socket)
        assert socket.event_names == ["save/error"]

    @pytest.mark.asyncio
    async def test_lazy_error_type_resolved_at_match_time(self, router, socket):
        registry = {}
        action = make_action(fail_for=EmissionPolicy("not_found", error_type=lambda: registry.get("error")))

        await router.route(ActionOutcome.failure(NotFound(1)), action, socket)
        assert socket.emitted == []

        registry["error"] = NotFound
        await router.route(ActionOutcome.failure(NotFound(2)), action, socket)
        assert socket.events("not_found") == [({"item_id": 2},)]

    @pytest.mark.asyncio
    async def test_failure_kind_matches_tagged_errors(self, router, socket):
        action = make_action(fail_for=EmissionPolicy("bad_json", error_type=FailureKind.PARAMETER_PARSE))

        await router.route(ActionOutcome.failure(ParameterParseError("{oops")), action, socket)
        await router.route(ActionOutcome.failure(validation_failure()), action, socket)

        assert socket.event_names == ["bad_json"]

    @pytest.mark.asyncio
    async def test_error_without_fields_sends_message(self, router, socket):
        await router.route(ActionOutcome.failure(RuntimeError("boom")), make_action(fail=EmissionPolicy("err")), socket)
        await router.route(ActionOutcome.failure(RuntimeError()), make_action(fail=EmissionPolicy("err")), socket)

        assert socket.events("err") == [("boom",), ("RuntimeError",)]

    @pytest.mark.asyncio
    async def test_error_with_fields_sends_fields(self, router, socket):
        await router.route(ActionOutcome.failure(NotFound(3)), make_action(fail=EmissionPolicy("err")), socket)
        assert socket.events("err") == [({"item_id": 3},)]

    @pytest.mark.asyncio
    async def test_empty_failure_emits_bare_event(self, router, socket):
        await router.route(ActionOutcome.failure(None), make_action(fail=EmissionPolicy("err")), socket)
        await router.route(ActionOutcome.failure(None), make_action(fail_for=EmissionPolicy("err_for", error_type=KeyError)), socket)
        await router.route(ActionOutcome.failure(None), make_action(fail=EmissionPolicy("skipped"), skip=True), socket)

        assert socket.emitted == [("err", ()), ("err_for", ())]

    @pytest.mark.asyncio
    async def test_failure_never_acknowledged(self, router, socket):
        ack = Mock()
        await router.route(ActionOutcome.failure(RuntimeError("boom")), make_action(), socket, ack)
        ack.assert_not_called()

    @pytest.mark.asyncio
    async def test_unhandled_failure_is_logged(self, router, socket, caplog):
        with caplog.at_level(logging.WARNING, logger="starsocket"):
            await router.route(ActionOutcome.failure(RuntimeError("boom")), make_action(), socket)

        assert socket.emitted == []
        assert "no failure policy matches" in caplog.text


class TestRouteErrors:

    @pytest.mark.asyncio
    async def test_emit_errors_are_logged_not_raised(self, router, caplog):
        class BrokenSocket:
            id = "broken"

            def emit(self, event, *args):
                raise ConnectionError("closed")

        with caplog.at_level(logging.ERROR, logger="starsocket"):
            await router.route(ActionOutcome.success("x"), make_action(success=EmissionPolicy("saved")), BrokenSocket())

        assert "Error routing result of" in caplog.text

    @pytest.mark.asyncio
    async def test_ack_errors_are_logged_not_raised(self, router, socket, caplog):
        def ack(value):
            raise ValueError("client gone")

        with caplog.at_level(logging.ERROR, logger="starsocket"):
            await router.route(ActionOutcome.success("x"), make_action(), socket, ack)

        assert "Error routing result" in caplog.text

"""
Tests for the controller registry and its builders.
"""

import pytest

from starsocket import (
    ActionKind, ControllerRegistry, EmissionPolicy, FailureKind, MetadataProvider,
    RegistryFrozenError, ValidationFailure,
)
from starsocket.core.params import connected_socket, message_body

from ..conftest import CreateMessage


class RecordingMiddleware:
    def use(self, socket, next_):
        next_()


def noop(*args):
    return None


class TestControllerRegistry:

    def test_registry_is_a_metadata_provider(self):
        assert isinstance(ControllerRegistry(), MetadataProvider)

    def test_actions_keep_declaration_order(self):
        registry = ControllerRegistry()
        messages = registry.controller(namespace="/messages", name="MessageController")
        messages.on_connect(noop)
        messages.on_message("save", noop)
        messages.on_disconnect(noop)

        (controller,) = registry.get_controllers()
        assert controller.namespace == "/messages"
        assert controller.name == "MessageController"
        assert [action.kind for action in controller.actions] == [
            ActionKind.CONNECT, ActionKind.MESSAGE, ActionKind.DISCONNECT,
        ]

    def test_builder_collects_policies_and_params(self):
        registry = ControllerRegistry()
        (registry.controller()
            .on_message("save", noop)
            .params(connected_socket(0), message_body(1, CreateMessage))
            .emit_on_success("save/success", {"exclude_none": True})
            .emit_on_fail("save/error")
            .emit_on_fail_for("save/validation_error", lambda: ValidationFailure)
            .skip_emit_on_empty_result())

        action = registry.get_controllers()[0].actions[0]
        assert action.event_name == "save"
        assert [param.index for param in action.params] == [0, 1]
        assert action.emit_on_success == EmissionPolicy("save/success", {"exclude_none": True})
        assert action.emit_on_fail.event == "save/error"
        assert action.emit_on_fail_for.resolve_error_type() is ValidationFailure
        assert action.skip_emit_on_empty_result

    def test_params_accepts_lists(self):
        registry = ControllerRegistry()
        registry.controller().on_connect(noop).params([connected_socket(0), message_body(1)])
        assert len(registry.get_controllers()[0].actions[0].params) == 2

    def test_on_message_requires_event_name(self):
        with pytest.raises(ValueError):
            ControllerRegistry().controller().on_message("", noop)

    def test_emit_on_fail_for_requires_error_type(self):
        builder = ControllerRegistry().controller().on_message("save", noop)
        with pytest.raises(ValueError):
            builder.emit_on_fail_for("save/error", None)

    def test_emit_on_fail_for_accepts_failure_kind(self):
        registry = ControllerRegistry()
        registry.controller().on_message("save", noop).emit_on_fail_for("bad", FailureKind.PARAMETER_PARSE)
        policy = registry.get_controllers()[0].actions[0].emit_on_fail_for
        assert policy.resolve_error_type() is FailureKind.PARAMETER_PARSE

    def test_reading_freezes_registry(self):
        registry = ControllerRegistry()
        builder = registry.controller()
        action = builder.on_connect(noop)

        first_read = registry.get_controllers()
        assert registry.frozen
        assert registry.get_controllers() is first_read

        with pytest.raises(RegistryFrozenError):
            registry.controller()
        with pytest.raises(RegistryFrozenError):
            builder.on_message("late", noop)
        with pytest.raises(RegistryFrozenError):
            action.emit_on_success("late")
        with pytest.raises(RegistryFrozenError):
            registry.middleware(RecordingMiddleware())

    def test_middlewares(self):
        registry = ControllerRegistry()
        first, second = RecordingMiddleware(), RecordingMiddleware()
        registry.middleware(first, priority=5).middleware(second)

        registrations = registry.get_middlewares()
        assert [r.instance for r in registrations] == [first, second]
        assert [r.priority for r in registrations] == [5, 0]
        assert registry.frozen

    def test_middleware_requires_use(self):
        with pytest.raises(TypeError):
            ControllerRegistry().middleware(object())

    def test_default_provider_has_no_middlewares(self):
        class StaticProvider(MetadataProvider):
            def get_controllers(self):
                return ()

        assert StaticProvider().get_middlewares() == ()

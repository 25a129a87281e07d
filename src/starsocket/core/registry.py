"""
Controller Registry

Builder-style registration of socket controllers. Registration happens at
startup; the first read by a dispatcher freezes the registry into
immutable ``ControllerRegistration`` tuples that live for the process.

Example:
    ```python
    registry = ControllerRegistry()
    messages = registry.controller(namespace="/messages")

    (messages.on_message("save", controller.save)
        .params(connected_socket(0), message_body(1, CreateMessage))
        .emit_on_success("save/success")
        .emit_on_fail("save/error")
        .emit_on_fail_for("save/validation_error", lambda: ValidationFailure))
    ```
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Mapping, Optional, Tuple

from fastcore.basics import listify

from .errors import RegistryFrozenError
from .metadata import (
    ActionDescriptor, ActionKind, ControllerRegistration, EmissionPolicy,
    MiddlewareRegistration, ParameterDescriptor,
)

logger = logging.getLogger(__name__)


class MetadataProvider(ABC):
    """Source of controller and middleware metadata for a dispatcher"""

    @abstractmethod
    def get_controllers(self) -> Tuple[ControllerRegistration, ...]:
        """Return every controller; must be stable once read."""
        pass

    def get_middlewares(self) -> Tuple[MiddlewareRegistration, ...]:
        """Return connection middlewares. None by default."""
        return ()


class ActionBuilder:
    """Accumulates the declaration of one action"""

    def __init__(self, owner: 'ControllerBuilder', kind: ActionKind, handler: Callable, event_name: Optional[str] = None):
        if kind is ActionKind.MESSAGE and not event_name:
            raise ValueError("on_message requires a non-empty event name")
        self._owner = owner
        self.kind = kind
        self.handler = handler
        self.event_name = event_name
        self._params: List[ParameterDescriptor] = []
        self._emit_on_success: Optional[EmissionPolicy] = None
        self._emit_on_fail: Optional[EmissionPolicy] = None
        self._emit_on_fail_for: Optional[EmissionPolicy] = None
        self._skip_emit_on_empty_result = False

    def params(self, *descriptors: ParameterDescriptor) -> 'ActionBuilder':
        self._owner._check_open()
        for descriptor in descriptors:
            self._params.extend(listify(descriptor))
        return self

    def emit_on_success(self, event: str, transform_options: Optional[Mapping[str, Any]] = None) -> 'ActionBuilder':
        self._owner._check_open()
        self._emit_on_success = EmissionPolicy(event, transform_options)
        return self

    def emit_on_fail(self, event: str, transform_options: Optional[Mapping[str, Any]] = None) -> 'ActionBuilder':
        self._owner._check_open()
        self._emit_on_fail = EmissionPolicy(event, transform_options)
        return self

    def emit_on_fail_for(
        self,
        event: str,
        error_type: Any,
        transform_options: Optional[Mapping[str, Any]] = None,
    ) -> 'ActionBuilder':
        """
        Emit ``event`` when the failure matches ``error_type``.

        Args:
            event: Outbound event name
            error_type: Exception class, ``FailureKind`` or a zero-argument
                callable returning one, resolved when a failure is matched
            transform_options: Outbound flatten options for this policy
        """
        self._owner._check_open()
        if error_type is None:
            raise ValueError("emit_on_fail_for requires an error type")
        self._emit_on_fail_for = EmissionPolicy(event, transform_options, error_type)
        return self

    def skip_emit_on_empty_result(self, skip: bool = True) -> 'ActionBuilder':
        self._owner._check_open()
        self._skip_emit_on_empty_result = skip
        return self

    def build(self) -> ActionDescriptor:
        return ActionDescriptor(
            kind=self.kind,
            handler=self.handler,
            event_name=self.event_name,
            params=tuple(self._params),
            emit_on_success=self._emit_on_success,
            emit_on_fail=self._emit_on_fail,
            emit_on_fail_for=self._emit_on_fail_for,
            skip_emit_on_empty_result=self._skip_emit_on_empty_result,
        )


class ControllerBuilder:
    """Accumulates the actions of one controller in declaration order"""

    def __init__(self, registry: 'ControllerRegistry', namespace: Optional[str] = None, name: Optional[str] = None):
        self._registry = registry
        self.namespace = namespace
        self.name = name
        self._actions: List[ActionBuilder] = []

    def on_connect(self, handler: Callable) -> ActionBuilder:
        return self._add(ActionKind.CONNECT, handler)

    def on_disconnect(self, handler: Callable) -> ActionBuilder:
        return self._add(ActionKind.DISCONNECT, handler)

    def on_message(self, event_name: str, handler: Callable) -> ActionBuilder:
        return self._add(ActionKind.MESSAGE, handler, event_name)

    def _add(self, kind: ActionKind, handler: Callable, event_name: Optional[str] = None) -> ActionBuilder:
        self._check_open()
        action = ActionBuilder(self, kind, handler, event_name)
        self._actions.append(action)
        return action

    def _check_open(self):
        self._registry._check_open()

    def build(self) -> ControllerRegistration:
        return ControllerRegistration(
            namespace=self.namespace,
            actions=tuple(action.build() for action in self._actions),
            name=self.name,
        )


class ControllerRegistry(MetadataProvider):
    """
    Default metadata provider.

    Controllers and middlewares are declared through builders. The first
    call to ``get_controllers`` or ``get_middlewares`` freezes the registry;
    further registration raises ``RegistryFrozenError``.
    """

    def __init__(self):
        self._controllers: List[ControllerBuilder] = []
        self._middlewares: List[MiddlewareRegistration] = []
        self._frozen: Optional[Tuple[ControllerRegistration, ...]] = None

    def controller(self, namespace: Optional[str] = None, name: Optional[str] = None) -> ControllerBuilder:
        self._check_open()
        builder = ControllerBuilder(self, namespace, name)
        self._controllers.append(builder)
        return builder

    def middleware(self, instance: Any, priority: int = 0) -> 'ControllerRegistry':
        """Register an object exposing ``use(socket, next)``."""
        self._check_open()
        if not callable(getattr(instance, 'use', None)):
            raise TypeError(f"Middleware {instance!r} must define use(socket, next)")
        self._middlewares.append(MiddlewareRegistration(instance, priority))
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def freeze(self) -> Tuple[ControllerRegistration, ...]:
        if self._frozen is None:
            self._frozen = tuple(builder.build() for builder in self._controllers)
            logger.debug(f"Registry frozen with {len(self._frozen)} controllers")
        return self._frozen

    def get_controllers(self) -> Tuple[ControllerRegistration, ...]:
        return self.freeze()

    def get_middlewares(self) -> Tuple[MiddlewareRegistration, ...]:
        self.freeze()
        return tuple(self._middlewares)

    def _check_open(self):
        if self._frozen is not None:
            raise RegistryFrozenError("Controllers cannot be registered after the registry has been read")


__all__ = ["MetadataProvider", "ControllerRegistry", "ControllerBuilder", "ActionBuilder"]

"""
Action Metadata

Immutable descriptions of socket controllers, their actions and the
parameters each action receives. These structures are produced once at
startup by the controller registry and read by the dispatcher for the
lifetime of the server.
"""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Tuple, Type


class ActionKind(Enum):
    """Transport event an action is bound to"""
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    MESSAGE = "message"


class ParamSource(Enum):
    """Where a handler argument is taken from"""
    CONNECTED_SOCKET = "connected_socket"
    SOCKET_IO = "socket_io"
    SOCKET_QUERY_PARAM = "socket_query_param"
    SOCKET_ID = "socket_id"
    SOCKET_REQUEST = "socket_request"
    SOCKET_ROOMS = "socket_rooms"
    MESSAGE_BODY = "message_body"
    CUSTOM = "custom"


class DeclaredType(Enum):
    """Semantic type of a message body parameter, used to pick a coercion"""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    OBJECT = "object"
    NONE = "none"

    @classmethod
    def for_type(cls, tp: Any) -> 'DeclaredType':
        """Map a Python type given at registration time to its declared type."""
        if tp is None:
            return cls.NONE
        if isinstance(tp, cls):
            return tp
        if tp is bool:
            return cls.BOOLEAN
        if tp in (int, float):
            return cls.NUMBER
        if tp is str:
            return cls.STRING
        if inspect.isclass(tp):
            return cls.OBJECT
        raise TypeError(f"Cannot declare a message body of type {tp!r}")


# Parsed from JSON but never mapped onto a shape or validated
GENERIC_SHAPES = (object, dict, list, tuple, set, frozenset)


class FailureKind(Enum):
    """Stable discriminator carried by every failure raised by this package"""
    PARAMETER_PARSE = "parameter_parse"
    VALIDATION = "validation"


@dataclass(frozen=True)
class ParameterDescriptor:
    """
    One formal argument of an action handler.

    ``index`` is the position in the handler signature. Values may be
    resolved in any order; they are always re-sorted by ``index`` before
    the handler is called.
    """
    index: int
    source: ParamSource
    name: Optional[str] = None
    declared_type: DeclaredType = DeclaredType.NONE
    shape: Optional[Type] = None
    transform: Optional[Callable[[Any, Any], Any]] = None
    extractor: Optional[Callable[..., Any]] = None
    validate: Optional[bool] = None
    transform_options: Optional[Mapping[str, Any]] = None
    path: Optional[str] = None

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Parameter index must be non-negative, got {self.index}")
        if self.source is ParamSource.SOCKET_QUERY_PARAM and not self.name:
            raise ValueError("Query parameters require a name")
        if self.source is ParamSource.CUSTOM and self.extractor is None:
            raise ValueError("Custom parameters require an extractor")

    @property
    def is_shape(self) -> bool:
        """True when the body maps onto a concrete model, not a generic object or container."""
        return self.shape is not None and self.shape not in GENERIC_SHAPES


@dataclass(frozen=True)
class EmissionPolicy:
    """Outbound event emitted when an action settles"""
    event: str
    transform_options: Optional[Mapping[str, Any]] = None
    error_type: Any = None

    def resolve_error_type(self) -> Any:
        """
        Resolve the error type reference at match time.

        The reference may be a class, a ``FailureKind`` or a zero-argument
        callable returning either of them.
        """
        ref = self.error_type
        if ref is None or inspect.isclass(ref) or isinstance(ref, FailureKind):
            return ref
        if callable(ref):
            return ref()
        raise TypeError(f"Unsupported error type reference: {ref!r}")


@dataclass(frozen=True)
class ActionDescriptor:
    """A handler bound to a connection lifecycle event or a named message"""
    kind: ActionKind
    handler: Callable[..., Any]
    event_name: Optional[str] = None
    params: Tuple[ParameterDescriptor, ...] = ()
    emit_on_success: Optional[EmissionPolicy] = None
    emit_on_fail: Optional[EmissionPolicy] = None
    emit_on_fail_for: Optional[EmissionPolicy] = None
    skip_emit_on_empty_result: bool = False

    def __post_init__(self):
        if self.kind is ActionKind.MESSAGE and not self.event_name:
            raise ValueError("Message actions require a non-empty event name")
        indexes = [param.index for param in self.params]
        if len(indexes) != len(set(indexes)):
            raise ValueError(f"Duplicate parameter index in {self.name}: {sorted(indexes)}")

    @property
    def name(self) -> str:
        return getattr(self.handler, '__qualname__', repr(self.handler))

    def routing_key(self, namespace: Optional[str] = None) -> str:
        """Key combining namespace and bound event, e.g. ``/chat:save``."""
        return f"{namespace or '/'}:{self.event_name or self.kind.value}"


@dataclass(frozen=True)
class ControllerRegistration:
    """A controller namespace and its actions in declaration order"""
    namespace: Optional[str] = None
    actions: Tuple[ActionDescriptor, ...] = ()
    name: Optional[str] = None


@dataclass(frozen=True)
class MiddlewareRegistration:
    """Connection middleware run by the transport before controllers see a socket"""
    instance: Any
    priority: int = 0


__all__ = [
    "ActionKind", "ParamSource", "DeclaredType", "FailureKind",
    "ParameterDescriptor", "EmissionPolicy", "ActionDescriptor",
    "ControllerRegistration", "MiddlewareRegistration", "GENERIC_SHAPES",
]

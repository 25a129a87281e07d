"""
Parameter Declarations

Shorthand constructors for ``ParameterDescriptor``. Each returns a
descriptor for one handler argument at the given position.
"""

from typing import Any, Callable, Mapping, Optional

from .metadata import DeclaredType, ParamSource, ParameterDescriptor


def connected_socket(index: int, transform: Optional[Callable] = None) -> ParameterDescriptor:
    "The connection the event arrived on"
    return ParameterDescriptor(index, ParamSource.CONNECTED_SOCKET, transform=transform)


def socket_io(index: int, transform: Optional[Callable] = None) -> ParameterDescriptor:
    "The root server, for handlers that broadcast"
    return ParameterDescriptor(index, ParamSource.SOCKET_IO, transform=transform)


def socket_query_param(index: int, name: str, transform: Optional[Callable] = None) -> ParameterDescriptor:
    "A value from the connection's handshake query"
    return ParameterDescriptor(index, ParamSource.SOCKET_QUERY_PARAM, name=name, transform=transform)


def socket_id(index: int, transform: Optional[Callable] = None) -> ParameterDescriptor:
    return ParameterDescriptor(index, ParamSource.SOCKET_ID, transform=transform)


def socket_request(index: int, transform: Optional[Callable] = None) -> ParameterDescriptor:
    return ParameterDescriptor(index, ParamSource.SOCKET_REQUEST, transform=transform)


def socket_rooms(index: int, transform: Optional[Callable] = None) -> ParameterDescriptor:
    return ParameterDescriptor(index, ParamSource.SOCKET_ROOMS, transform=transform)


def message_body(
    index: int,
    declared_type: Any = None,
    *,
    validate: Optional[bool] = None,
    transform_options: Optional[Mapping[str, Any]] = None,
    path: Optional[str] = None,
    transform: Optional[Callable] = None,
) -> ParameterDescriptor:
    """
    The payload of the inbound message.

    Args:
        index: Position in the handler signature
        declared_type: ``DeclaredType``, a builtin (int, float, str, bool, dict)
            or a model class the payload is mapped onto
        validate: Per-parameter override of the global validate flag
        transform_options: Per-parameter inbound mapping options
        path: Dotted path selecting a nested field of a mapping payload
        transform: Function ``(value, socket) -> value`` applied last
    """
    kind = DeclaredType.for_type(declared_type)
    shape = declared_type if kind is DeclaredType.OBJECT and not isinstance(declared_type, DeclaredType) else None
    return ParameterDescriptor(
        index,
        ParamSource.MESSAGE_BODY,
        declared_type=kind,
        shape=shape,
        validate=validate,
        transform_options=transform_options,
        path=path,
        transform=transform,
    )


def custom(index: int, extractor: Callable[..., Any], transform: Optional[Callable] = None) -> ParameterDescriptor:
    "Value computed by ``extractor(context)``; the extractor may be a coroutine function"
    return ParameterDescriptor(index, ParamSource.CUSTOM, extractor=extractor, transform=transform)


__all__ = [
    "connected_socket", "socket_io", "socket_query_param", "socket_id",
    "socket_request", "socket_rooms", "message_body", "custom",
]

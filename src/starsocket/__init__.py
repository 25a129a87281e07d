"""
StarSocket - Socket Controllers for Python

Declare controllers whose actions handle socket connections, disconnections
and named messages. StarSocket resolves each handler's arguments from the
connection and payload, validates message bodies with pydantic, and turns
the handler's result or failure into outbound events or acknowledgments.
"""

from .core import (
    ActionKind, ParamSource, DeclaredType, FailureKind,
    ParameterDescriptor, EmissionPolicy, ActionDescriptor,
    ControllerRegistration, MiddlewareRegistration,
    SocketControllerError, ParameterParseError, ValidationFailure,
    FieldError, RegistryFrozenError,
    ActionOutcome,
    MetadataProvider, ControllerRegistry,
    params,
)
from .core.params import (
    connected_socket, socket_io, socket_query_param, socket_id,
    socket_request, socket_rooms, message_body, custom,
)
from .config import DispatcherConfig, ApplicationConfig, LoggingConfig, Environment, configure_logging
from .services import CoercionService, PydanticCoercionService
from .app import ConnectionDispatcher, InvocationContext, configure_server
from .transport import InMemoryServer, InMemorySocket

__all__ = [
    # Metadata
    'ActionKind',
    'ParamSource',
    'DeclaredType',
    'FailureKind',
    'ParameterDescriptor',
    'EmissionPolicy',
    'ActionDescriptor',
    'ControllerRegistration',
    'MiddlewareRegistration',
    'ActionOutcome',

    # Errors
    'SocketControllerError',
    'ParameterParseError',
    'ValidationFailure',
    'FieldError',
    'RegistryFrozenError',

    # Registration
    'MetadataProvider',
    'ControllerRegistry',
    'params',
    'connected_socket',
    'socket_io',
    'socket_query_param',
    'socket_id',
    'socket_request',
    'socket_rooms',
    'message_body',
    'custom',

    # Configuration
    'DispatcherConfig',
    'ApplicationConfig',
    'LoggingConfig',
    'Environment',
    'configure_logging',

    # Dispatch
    'CoercionService',
    'PydanticCoercionService',
    'ConnectionDispatcher',
    'InvocationContext',
    'configure_server',

    # Transport
    'InMemoryServer',
    'InMemorySocket',
]

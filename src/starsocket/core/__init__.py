"""
StarSocket Core Module

Framework-agnostic metadata, errors and registration. Nothing here talks
to a transport.
"""

from .metadata import (
    ActionKind, ParamSource, DeclaredType, FailureKind,
    ParameterDescriptor, EmissionPolicy, ActionDescriptor,
    ControllerRegistration, MiddlewareRegistration,
)
from .errors import (
    SocketControllerError, ParameterParseError, ValidationFailure,
    FieldError, RegistryFrozenError,
)
from .outcome import ActionOutcome
from .registry import MetadataProvider, ControllerRegistry, ControllerBuilder, ActionBuilder
from . import params

__all__ = [
    "ActionKind", "ParamSource", "DeclaredType", "FailureKind",
    "ParameterDescriptor", "EmissionPolicy", "ActionDescriptor",
    "ControllerRegistration", "MiddlewareRegistration",
    "SocketControllerError", "ParameterParseError", "ValidationFailure",
    "FieldError", "RegistryFrozenError",
    "ActionOutcome",
    "MetadataProvider", "ControllerRegistry", "ControllerBuilder", "ActionBuilder",
    "params",
]

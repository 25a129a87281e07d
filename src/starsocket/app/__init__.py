"""
Application Service Layer

The dispatch engine between the transport and controller handlers.

Key components:
- dispatcher: transport events -> action invocations
- resolver: handler argument resolution and message body coercion
- invoker: handler calls settling into outcomes
- router: outcomes -> emissions and acknowledgments
"""

from .context import InvocationContext
from .resolver import ParameterResolver
from .invoker import ActionInvoker
from .router import ResultRouter, DEFAULT_ACK
from .dispatcher import ConnectionDispatcher
from .configurator import configure_server

__all__ = [
    'InvocationContext',
    'ParameterResolver',
    'ActionInvoker',
    'ResultRouter',
    'DEFAULT_ACK',
    'ConnectionDispatcher',
    'configure_server',
]

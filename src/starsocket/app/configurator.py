"""
Server Configurator

One-call wiring of a registry onto a socket server.
"""

from typing import Any, Optional

from ..config import ApplicationConfig, configure_logging, get_config
from ..core.registry import MetadataProvider
from ..services.coercion import CoercionService
from .dispatcher import ConnectionDispatcher


def configure_server(
    io: Any,
    provider: MetadataProvider,
    config: Optional[ApplicationConfig] = None,
    coercion: Optional[CoercionService] = None,
    setup_logging: bool = False,
) -> ConnectionDispatcher:
    """
    Register every controller and middleware of ``provider`` on ``io``.

    Call this after all controllers are declared and before the server
    starts accepting connections.

    Args:
        io: Root socket server
        provider: Controller registry or any other metadata provider
        config: Application configuration; the process default when omitted
        coercion: Replacement for the pydantic coercion service
        setup_logging: Install handlers from ``config.logging``

    Returns:
        The dispatcher, already executed

    Example:
        ```python
        io = InMemoryServer()
        dispatcher = configure_server(io, registry)
        socket = await io.connect()
        ```
    """
    config = config or get_config()
    if setup_logging:
        configure_logging(config.logging)
    return ConnectionDispatcher(io, provider, config.dispatcher, coercion).execute()


__all__ = ["configure_server"]

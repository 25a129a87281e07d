"""
StarSocket Transport Module

Capability protocols the dispatcher relies on, plus an in-process
loopback implementation.
"""

from .base import SocketConnection, SocketServer, handshake_query
from .memory import InMemoryServer, InMemoryNamespace, InMemorySocket, Handshake, ConnectionRejectedError

__all__ = [
    "SocketConnection", "SocketServer", "handshake_query",
    "InMemoryServer", "InMemoryNamespace", "InMemorySocket", "Handshake",
    "ConnectionRejectedError",
]

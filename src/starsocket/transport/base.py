"""
Transport Capability Interfaces

The dispatcher never implements a transport. It talks to any server and
connection object that structurally matches these protocols; ``emit``
and listener callables may be plain functions or coroutines.
"""

from typing import Any, Callable, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class SocketConnection(Protocol):
    """One connected client"""

    id: str
    handshake: Any
    request: Any
    rooms: Any

    def on(self, event: str, handler: Callable[..., Any]) -> Any: ...

    def emit(self, event: str, *args: Any) -> Any: ...


@runtime_checkable
class SocketServer(Protocol):
    """Root transport, or a namespace returned by ``of``"""

    def on(self, event: str, handler: Callable[..., Any]) -> Any: ...

    def of(self, namespace: str) -> 'SocketServer': ...

    def use(self, middleware: Callable[[Any, Callable[..., Any]], Any]) -> Any: ...

    def emit(self, event: str, *args: Any) -> Any: ...


def handshake_query(connection: Any) -> Mapping[str, Any]:
    """Query mapping sent by the client when it connected; empty when unknown."""
    handshake = getattr(connection, 'handshake', None)
    if handshake is None:
        return {}
    if isinstance(handshake, Mapping):
        query: Optional[Mapping[str, Any]] = handshake.get('query')
    else:
        query = getattr(handshake, 'query', None)
    return query or {}


__all__ = ["SocketConnection", "SocketServer", "handshake_query"]

"""
In-Memory Transport

Loopback server and sockets living in a single process. Useful for tests,
examples and embedding controllers without a network stack; events a
controller emits are recorded on the socket instead of being sent.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..core.utils import maybe_await

logger = logging.getLogger(__name__)


class ConnectionRejectedError(Exception):
    """Raised when a middleware rejects a connection"""
    pass


@dataclass
class Handshake:
    """Data the client sent when connecting"""
    query: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, Any] = field(default_factory=dict)


class InMemorySocket:
    """A connected client. Outbound events are appended to ``emitted``."""

    def __init__(self, namespace: 'InMemoryNamespace', query: Optional[Dict[str, Any]] = None,
                 request: Any = None, sid: Optional[str] = None):
        self.id = sid or uuid.uuid4().hex
        self.nsp = namespace
        self.handshake = Handshake(query=dict(query or {}))
        self.request = request
        self.rooms: Set[str] = {self.id}
        self.connected = True
        self.emitted: List[Tuple[str, Tuple[Any, ...]]] = []
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)

    def on(self, event: str, handler: Callable) -> None:
        self._listeners[event].append(handler)

    def emit(self, event: str, *args: Any) -> None:
        """Record an event sent to this client."""
        self.emitted.append((event, args))
        logger.debug(f"Socket {self.id} <- {event}")

    def join(self, room: str) -> None:
        self.rooms.add(room)

    def leave(self, room: str) -> None:
        self.rooms.discard(room)

    def events(self, name: str) -> List[Tuple[Any, ...]]:
        """Argument tuples of every emission of ``name``, oldest first."""
        return [args for event, args in self.emitted if event == name]

    @property
    def event_names(self) -> List[str]:
        return [event for event, _ in self.emitted]

    async def receive(self, event: str, data: Any = None, ack: Optional[Callable] = None) -> List[Any]:
        """Deliver an event from the client and wait for every listener to settle."""
        if not self.connected:
            raise RuntimeError(f"Socket {self.id} is disconnected")
        results = [handler(data, ack) for handler in list(self._listeners.get(event, ()))]
        return [await maybe_await(result) for result in results]

    async def disconnect(self, reason: str = "client namespace disconnect") -> None:
        if not self.connected:
            return
        self.connected = False
        self.nsp.sockets.pop(self.id, None)
        results = [handler(reason) for handler in list(self._listeners.get("disconnect", ()))]
        for result in results:
            await maybe_await(result)


class InMemoryNamespace:
    """A namespace accepting sockets and broadcasting to them"""

    def __init__(self, server: Optional['InMemoryServer'], name: str = "/"):
        self.server = server
        self.name = name
        self.sockets: Dict[str, InMemorySocket] = {}
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)
        self._middlewares: List[Callable] = []

    def on(self, event: str, handler: Callable) -> None:
        self._listeners[event].append(handler)

    def of(self, namespace: str) -> 'InMemoryNamespace':
        return self.server.of(namespace)

    def use(self, middleware: Callable[[Any, Callable], Any]) -> None:
        self._middlewares.append(middleware)

    def emit(self, event: str, *args: Any) -> None:
        """Broadcast to every socket in the namespace."""
        for socket in list(self.sockets.values()):
            socket.emit(event, *args)

    async def connect(self, query: Optional[Dict[str, Any]] = None, request: Any = None,
                      sid: Optional[str] = None) -> InMemorySocket:
        """Open a socket, run middlewares, then notify connection listeners."""
        socket = InMemorySocket(self, query=query, request=request, sid=sid)
        for middleware in self._middlewares:
            await self._run_middleware(middleware, socket)

        self.sockets[socket.id] = socket
        logger.debug(f"Socket {socket.id} connected to {self.name}")
        for handler in list(self._listeners.get("connection", ())):
            await maybe_await(handler(socket))
        return socket

    async def _run_middleware(self, middleware: Callable, socket: InMemorySocket) -> None:
        state: Dict[str, Any] = {}

        def next_(err: Any = None):
            state['called'] = True
            state['error'] = err

        await maybe_await(middleware(socket, next_))
        if not state.get('called'):
            raise ConnectionRejectedError(f"Middleware {middleware!r} did not call next")
        if state['error'] is not None:
            raise ConnectionRejectedError(str(state['error']))


class InMemoryServer(InMemoryNamespace):
    """Root server; the default namespace is ``/``"""

    def __init__(self):
        super().__init__(None, "/")
        self.server = self
        self.namespaces: Dict[str, InMemoryNamespace] = {"/": self}

    def of(self, namespace: str) -> InMemoryNamespace:
        if namespace not in self.namespaces:
            self.namespaces[namespace] = InMemoryNamespace(self, namespace)
        return self.namespaces[namespace]


__all__ = ["InMemoryServer", "InMemoryNamespace", "InMemorySocket", "Handshake", "ConnectionRejectedError"]

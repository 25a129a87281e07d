"""
Invocation Context

Everything one dispatch cycle knows about the event that triggered it,
without coupling to a particular transport.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class InvocationContext:
    """
    Context of a single action invocation.

    Attributes:
        socket: Connection the event arrived on
        data: Raw payload of a message event; ``None`` for connect/disconnect
        ack: Acknowledgment callback supplied by the client, if any
        namespace: Namespace of the controller handling the event
    """
    socket: Any
    data: Any = None
    ack: Optional[Callable[..., Any]] = None
    namespace: Optional[str] = None

    @property
    def socket_id(self) -> Optional[str]:
        return getattr(self.socket, 'id', None)

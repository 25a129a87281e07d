"""
Connection Dispatcher

Binds registered controller actions to transport events. Controllers
without a namespace receive every connection on the default namespace;
namespaced controllers only see connections under their namespace.

Key Responsibilities:
- Listener registration per connection, in action declaration order
- One asyncio task per triggering event (connect, disconnect, message)
- Resolution, invocation and result routing for each task
- Middleware registration on the root transport, by ascending priority
"""

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Iterable, Optional, Set

from ..config import DispatcherConfig
from ..core.metadata import ActionDescriptor, ActionKind, ControllerRegistration
from ..core.outcome import ActionOutcome
from ..core.registry import MetadataProvider
from ..services.coercion import CoercionService, PydanticCoercionService
from .context import InvocationContext
from .invoker import ActionInvoker
from .resolver import ParameterResolver
from .router import ResultRouter

logger = logging.getLogger(__name__)


class ConnectionDispatcher:
    """
    Registers controllers and middlewares on a socket server.

    Example:
        ```python
        dispatcher = ConnectionDispatcher(io, registry, DispatcherConfig(validate=True))
        dispatcher.execute()
        ```
    """

    def __init__(
        self,
        io: Any,
        provider: MetadataProvider,
        config: Optional[DispatcherConfig] = None,
        coercion: Optional[CoercionService] = None,
    ):
        self.io = io
        self.provider = provider
        self.config = config or DispatcherConfig()
        self.coercion = coercion or PydanticCoercionService()

        self.resolver = ParameterResolver(io, self.coercion, self.config)
        self.invoker = ActionInvoker(self.resolver)
        self.router = ResultRouter(self.coercion, self.config)

        self._pending: Set[asyncio.Task] = set()

    def execute(self) -> 'ConnectionDispatcher':
        """Register controllers, then middlewares."""
        self.register_controllers()
        self.register_middlewares()
        return self

    def register_middlewares(self) -> 'ConnectionDispatcher':
        middlewares = sorted(self.provider.get_middlewares(), key=lambda registration: registration.priority)
        for registration in middlewares:
            self.io.use(_bind_middleware(registration.instance))
        if middlewares:
            logger.info(f"Registered {len(middlewares)} socket middlewares")
        return self

    def register_controllers(self) -> 'ConnectionDispatcher':
        controllers = self.provider.get_controllers()
        without_namespace = [controller for controller in controllers if not controller.namespace]
        with_namespace = [controller for controller in controllers if controller.namespace]

        self.io.on("connection", partial(self.handle_connection, without_namespace))

        for controller in with_namespace:
            self.io.of(controller.namespace).on("connection", partial(self.handle_connection, [controller]))

        logger.info(
            f"Registered {len(controllers)} socket controllers "
            f"({len(with_namespace)} namespaced)"
        )
        return self

    def handle_connection(self, controllers: Iterable[ControllerRegistration], socket: Any) -> None:
        """Attach every action of ``controllers`` to a new connection."""
        for controller in controllers:
            for action in controller.actions:
                context = InvocationContext(socket=socket, namespace=controller.namespace)

                if action.kind is ActionKind.CONNECT:
                    self._spawn(action, context)
                elif action.kind is ActionKind.DISCONNECT:
                    socket.on("disconnect", self._disconnect_listener(action, context))
                elif action.kind is ActionKind.MESSAGE:
                    socket.on(action.event_name, self._message_listener(action, context))
                    logger.debug(f"Listening for {action.routing_key(controller.namespace)} on socket {socket.id}")

    def _disconnect_listener(self, action: ActionDescriptor, context: InvocationContext) -> Callable[..., asyncio.Task]:
        def listener(*_args: Any) -> asyncio.Task:
            return self._spawn(action, context)
        return listener

    def _message_listener(self, action: ActionDescriptor, context: InvocationContext) -> Callable[..., asyncio.Task]:
        def listener(data: Any = None, ack: Optional[Callable[..., Any]] = None, *_args: Any) -> asyncio.Task:
            message = InvocationContext(
                socket=context.socket,
                data=data,
                ack=ack if callable(ack) else None,
                namespace=context.namespace,
            )
            return self._spawn(action, message)
        return listener

    def _spawn(self, action: ActionDescriptor, context: InvocationContext) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self.dispatch(action, context))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def dispatch(self, action: ActionDescriptor, context: InvocationContext) -> ActionOutcome:
        """Run one full cycle: resolve, invoke, route."""
        key = action.routing_key(context.namespace)
        logger.debug(f"Dispatching {key} for socket {context.socket_id}")

        outcome = await self.invoker.invoke(action, context)
        await self.router.route(outcome, action, context.socket, context.ack)

        logger.debug(f"Finished {key} for socket {context.socket_id} ({'failed' if outcome.failed else 'ok'})")
        return outcome

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def wait_pending(self) -> None:
        """Wait until every in-flight dispatch has settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


def _bind_middleware(instance: Any) -> Callable[[Any, Callable[..., Any]], Any]:
    def middleware(socket: Any, next_: Callable[..., Any]) -> Any:
        return instance.use(socket, next_)
    return middleware


__all__ = ["ConnectionDispatcher"]

"""
Parameter Resolver

Computes the ordered argument list for one action invocation. Each
parameter is resolved independently and concurrently; the results are
joined, any failure aborts the whole invocation, and the values are
re-sorted by declared index before the handler sees them.
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional

from fastcore.basics import first

from ..config import DispatcherConfig
from ..core.errors import ValidationFailure
from ..core.metadata import ActionDescriptor, DeclaredType, ParamSource, ParameterDescriptor
from ..core.utils import is_empty_payload, maybe_await
from ..services.coercion import CoercionService
from ..transport.base import handshake_query
from .context import InvocationContext

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (DeclaredType.NUMBER, DeclaredType.STRING, DeclaredType.BOOLEAN)


class ParameterResolver:
    """Resolves handler arguments from the connection and event payload"""

    def __init__(self, io: Any, coercion: CoercionService, config: Optional[DispatcherConfig] = None):
        """
        Args:
            io: Root transport injected into ``socket_io`` parameters
            coercion: Service converting message bodies
            config: Global transform and validation defaults
        """
        self.io = io
        self.coercion = coercion
        self.config = config or DispatcherConfig()

    async def resolve(self, action: ActionDescriptor, context: InvocationContext) -> List[Any]:
        """Resolve every parameter of ``action``, ordered by index."""
        params = action.params
        results = await asyncio.gather(
            *(self.resolve_param(param, context) for param in params),
            return_exceptions=True,
        )

        failure = first(result for result in results if isinstance(result, BaseException))
        if failure is not None:
            raise failure

        ordered = sorted(zip(params, results), key=lambda pair: pair[0].index)
        return [value for _, value in ordered]

    async def resolve_param(self, param: ParameterDescriptor, context: InvocationContext) -> Any:
        socket = context.socket
        source = param.source

        if source is ParamSource.CONNECTED_SOCKET:
            value = socket
        elif source is ParamSource.SOCKET_IO:
            value = self.io
        elif source is ParamSource.SOCKET_QUERY_PARAM:
            value = handshake_query(socket).get(param.name)
        elif source is ParamSource.SOCKET_ID:
            value = socket.id
        elif source is ParamSource.SOCKET_REQUEST:
            value = getattr(socket, 'request', None)
        elif source is ParamSource.SOCKET_ROOMS:
            value = getattr(socket, 'rooms', None)
        elif source is ParamSource.MESSAGE_BODY:
            value = await self._resolve_body(param, context.data)
        else:
            value = await maybe_await(param.extractor(context))

        if param.transform is not None:
            value = await maybe_await(param.transform(value, socket))
        return value

    async def _resolve_body(self, param: ParameterDescriptor, data: Any) -> Any:
        value = _select(data, param.path) if param.path else data
        if is_empty_payload(value):
            return value
        return await self.format_value(value, param)

    async def format_value(self, value: Any, param: ParameterDescriptor) -> Any:
        """Apply the coercion chosen by the parameter's declared type."""
        declared = param.declared_type
        if declared in _SCALAR_TYPES:
            return await maybe_await(self.coercion.coerce(value, declared))
        if declared is DeclaredType.OBJECT:
            return await self._parse_value(value, param)
        return value

    async def _parse_value(self, value: Any, param: ParameterDescriptor) -> Any:
        parsed = await maybe_await(self.coercion.structured_parse(value))
        if not (param.is_shape and self.config.use_transformer):
            return parsed

        options = self.config.inbound_options(param.transform_options)
        instance = await maybe_await(self.coercion.map_to_shape(parsed, param.shape, options))

        if self.config.should_validate(param.validate):
            errors = await maybe_await(self.coercion.validate(parsed, param.shape, options))
            if errors:
                logger.debug(f"Message body for {param.shape.__name__} failed validation with {len(errors)} errors")
                raise ValidationFailure(errors)
        return instance


def _select(data: Any, path: str) -> Any:
    "Follow a dotted `path` through nested mappings; missing keys give None"
    for key in path.split('.'):
        if not isinstance(data, Mapping):
            return None
        data = data.get(key)
    return data


__all__ = ["ParameterResolver"]

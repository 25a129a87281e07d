"""
Action Invoker

Resolves arguments and calls the handler, settling into a single
``ActionOutcome``. Handlers may be plain functions or coroutines.
"""

import logging

from ..core.metadata import ActionDescriptor
from ..core.outcome import ActionOutcome
from ..core.utils import maybe_await
from .context import InvocationContext
from .resolver import ParameterResolver

logger = logging.getLogger(__name__)


class ActionInvoker:
    """Calls action handlers. No retries; a raised error becomes the outcome."""

    def __init__(self, resolver: ParameterResolver):
        self.resolver = resolver

    async def invoke(self, action: ActionDescriptor, context: InvocationContext) -> ActionOutcome:
        try:
            args = await self.resolver.resolve(action, context)
            result = await maybe_await(action.handler(*args))
        except Exception as e:
            logger.debug(f"Action {action.name} failed: {type(e).__name__}: {e}")
            return ActionOutcome.failure(e)
        return ActionOutcome.success(result)


__all__ = ["ActionInvoker"]

"""
Result Router

Translates a settled outcome into outbound effects: an emission on the
connection, a call to the client's acknowledgment callback, or nothing.

Success:
    - value and emit-on-success policy: emit the flattened value
    - no value and policy: emit the bare event unless empty results are skipped
    - value, no policy, acknowledgment: ``ack(value)``
    - no value, no policy, acknowledgment: ``ack("received")``

Failure:
    - emit-on-fail-for whose error type matches: emit the flattened error
    - otherwise emit-on-fail: emit the flattened error, or its string form
      when flattening leaves no fields
    - no error: emit the bare failure event unless empty results are skipped

A failure with no matching policy is dropped silently for the client and
logged as a warning.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from ..config import DispatcherConfig
from ..core.metadata import ActionDescriptor, EmissionPolicy, FailureKind
from ..core.outcome import ActionOutcome
from ..core.utils import maybe_await
from ..services.coercion import CoercionService

logger = logging.getLogger(__name__)

DEFAULT_ACK = "received"


class ResultRouter:
    """Routes action outcomes back to the client"""

    def __init__(self, coercion: CoercionService, config: Optional[DispatcherConfig] = None):
        self.coercion = coercion
        self.config = config or DispatcherConfig()

    async def route(self, outcome: ActionOutcome, action: ActionDescriptor, socket: Any,
                    ack: Optional[Callable[..., Any]] = None) -> None:
        """Route ``outcome``. Never raises; routing errors are logged."""
        try:
            if outcome.failed:
                await self.handle_failure(outcome, action, socket)
            else:
                await self.handle_success(outcome, action, socket, ack)
        except Exception:
            logger.exception(f"Error routing result of {action.name}")

    async def handle_success(self, outcome: ActionOutcome, action: ActionDescriptor, socket: Any,
                             ack: Optional[Callable[..., Any]] = None) -> None:
        policy = action.emit_on_success
        result = outcome.value

        if policy is not None:
            if not outcome.is_empty:
                payload = await self._serialize(result, policy)
                await self._emit(socket, policy.event, payload)
            elif not action.skip_emit_on_empty_result:
                await self._emit(socket, policy.event)
        elif ack is not None:
            await maybe_await(ack(DEFAULT_ACK if outcome.is_empty else result))

    async def handle_failure(self, outcome: ActionOutcome, action: ActionDescriptor, socket: Any) -> None:
        if outcome.is_empty:
            if not action.skip_emit_on_empty_result:
                policy = action.emit_on_fail or action.emit_on_fail_for
                if policy is not None:
                    await self._emit(socket, policy.event)
            return

        error = outcome.error
        fail_for = action.emit_on_fail_for
        if fail_for is not None and self.error_matches(fail_for, error):
            payload = await self._serialize(error, fail_for)
            await self._emit(socket, fail_for.event, payload)
            return

        fail = action.emit_on_fail
        if fail is not None:
            payload = await self._serialize(error, fail)
            if isinstance(error, BaseException) and not _has_own_fields(payload):
                payload = str(error) or type(error).__name__
            await self._emit(socket, fail.event, payload)
            return

        logger.warning(f"Dropping failure of {action.name}: no failure policy matches", exc_info=_exc_info(error))

    def error_matches(self, policy: EmissionPolicy, error: Any) -> bool:
        """Compare the failure against the policy's error type, resolved now."""
        expected = policy.resolve_error_type()
        if expected is None:
            return False
        if isinstance(expected, FailureKind):
            return getattr(error, 'kind', None) is expected
        return type(error) is expected

    async def _serialize(self, value: Any, policy: EmissionPolicy) -> Any:
        if not self.config.use_transformer:
            return value
        options = self.config.outbound_options(policy.transform_options)
        return await maybe_await(self.coercion.to_plain(value, options))

    async def _emit(self, socket: Any, event: str, *payload: Any) -> None:
        logger.debug(f"Emitting {event} to socket {getattr(socket, 'id', None)}")
        await maybe_await(socket.emit(event, *payload))


def _has_own_fields(payload: Any) -> bool:
    if isinstance(payload, Mapping):
        return bool(payload)
    if isinstance(payload, BaseException):
        return any(not key.startswith('_') for key in vars(payload))
    return True


def _exc_info(error: Any):
    return error if isinstance(error, BaseException) else None


__all__ = ["ResultRouter", "DEFAULT_ACK"]

"""
Socket Controller Errors

Failures raised while resolving action parameters. Each carries a
``message``, a ``name`` identifying the concrete class and a stable
``kind`` discriminator used by ``emit_on_fail_for`` policies.
"""

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from .metadata import FailureKind


class SocketControllerError(Exception):
    """Base class for failures observable to socket clients"""

    kind: Optional[FailureKind] = None

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.name = type(self).__name__


class ParameterParseError(SocketControllerError):
    """Raised when a message body is given but cannot be parsed as JSON"""

    kind = FailureKind.PARAMETER_PARSE

    def __init__(self, value: Any):
        super().__init__(f"Parameter is invalid. Value ({_dump(value)}) cannot be parsed to JSON")
        self.value = value


@dataclass(frozen=True)
class FieldError:
    """One field-level validation violation"""
    loc: Tuple[Any, ...]
    msg: str
    type: str
    input: Any = None

    @property
    def field(self) -> str:
        return ".".join(str(part) for part in self.loc)

    @classmethod
    def from_pydantic(cls, error: dict) -> 'FieldError':
        return cls(
            loc=tuple(error.get("loc", ())),
            msg=error.get("msg", ""),
            type=error.get("type", ""),
            input=error.get("input"),
        )


class ValidationFailure(SocketControllerError):
    """Raised when a parsed message body violates its model constraints"""

    kind = FailureKind.VALIDATION

    def __init__(self, errors: Sequence[FieldError]):
        super().__init__("Validation failed")
        self.errors: List[FieldError] = list(errors)


class RegistryFrozenError(RuntimeError):
    """Raised when controllers are registered after dispatch has started"""
    pass


def _dump(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


__all__ = [
    "SocketControllerError", "ParameterParseError", "ValidationFailure",
    "FieldError", "RegistryFrozenError",
]

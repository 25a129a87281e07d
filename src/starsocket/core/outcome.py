"""
Action Outcome

The settled result of one handler invocation.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ActionOutcome:
    """Success value or failure of one dispatch cycle"""
    failed: bool = False
    value: Any = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, value: Any = None) -> 'ActionOutcome':
        return cls(failed=False, value=value)

    @classmethod
    def failure(cls, error: Optional[BaseException] = None) -> 'ActionOutcome':
        return cls(failed=True, error=error)

    @property
    def is_empty(self) -> bool:
        """True when the settled value (or error) is absent."""
        return (self.error if self.failed else self.value) is None

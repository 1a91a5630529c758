"""
Service Result Type

Explicit success/failure values returned by service boundaries, so callers
branch on the failure kind instead of relying on exception propagation.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

from paywall.infrastructure.exceptions import PaywallError


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def error(self) -> Optional[PaywallError]:
        return None

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying a typed error."""
    error: PaywallError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def unwrap(self):
        """Raise the carried error."""
        raise self.error


Result = Union[Ok[T], Err]

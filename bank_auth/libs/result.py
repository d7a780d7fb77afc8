"""
Result types for use cases and core services.

Expected failures (wrong password, expired code, unknown session) are
returned as values instead of raised, so callers have to look at them:

    result = await use_case.execute(email, password)
    if result.is_err():
        raise ClientError(result.error, status_code=401)
    return result.value

Infrastructure faults (database down, timeouts) are still exceptions.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Error:
    """Machine readable code plus a short message that is safe to show users."""

    code: str
    message: str
    details: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Result(Generic[T]):
    _value: Optional[T] = None
    _error: Optional[Error] = None

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Result is an error: {self._error.code}")
        return self._value

    @property
    def error(self) -> Error:
        if self._error is None:
            raise ValueError("Result is not an error")
        return self._error


class Return:
    """Factory for Result values."""

    @staticmethod
    def ok(value: Any = None) -> Result:
        return Result(_value=value)

    @staticmethod
    def err(error: Error) -> Result:
        return Result(_error=error)

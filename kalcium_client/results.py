"""
Explicit success/failure values for callers that prefer not to use try/except.

``attempt`` runs a client call and captures any :class:`KalcError` into a
:class:`Result`. Other exceptions still propagate, ``MalformedResponseError``
included.
"""

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

from .http_client import ApiError, KalcError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[KalcError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: KalcError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status of a failed API call, if any."""
        return self.error.status_code if isinstance(self.error, ApiError) else None

    def unwrap(self) -> T:
        """Return the value or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def attempt(awaitable: Awaitable[T]) -> Result[T]:
    """Await ``awaitable`` and wrap the outcome in a Result."""
    try:
        return Result.success(await awaitable)
    except KalcError as e:
        return Result.failure(e)

"""Result type returned by service-level operations."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from boardlens.exceptions import BoardlensError

T = TypeVar("T")


@dataclass
class ActionResult(Generic[T]):
    """Success-with-data or failure-with-error, never both.

    `message` is safe to show to an end user. `error` keeps the typed
    exception for callers that branch on the failure kind.
    """

    is_success: bool
    message: str
    data: T | None = None
    error: BoardlensError | None = None

    @classmethod
    def ok(cls, data: T, message: str = "OK") -> "ActionResult[T]":
        return cls(is_success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: BoardlensError) -> "ActionResult[T]":
        return cls(is_success=False, message=str(error), error=error)

    def unwrap(self) -> T:
        """Return the data or re-raise the recorded error."""
        if not self.is_success:
            raise self.error if self.error else BoardlensError(self.message)
        return self.data  # type: ignore[return-value]

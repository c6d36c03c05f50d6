from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failed:
    """A remote call that did not produce a usable response."""

    reason: str
    status_code: int | None = None
    error: Exception | None = None

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.reason} (HTTP {self.status_code})"
        return self.reason


Result = Union[Ok[T], Failed]

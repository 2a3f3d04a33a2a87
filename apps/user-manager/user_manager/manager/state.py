"""Request bookkeeping types used by the record manager and its client."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from user_manager.manager.errors import RequestError

T = TypeVar("T")


class Operation(str, Enum):
    LOAD = "load"
    CREATE = "create"
    UPDATE = "update"
    REMOVE = "remove"


class RequestStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RequestState:
    """Status of the latest invocation of one operation.

    Feedback only: the collection never depends on it.
    """

    status: RequestStatus = RequestStatus.IDLE
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "RequestState":
        return cls()

    @classmethod
    def loading(cls) -> "RequestState":
        return cls(RequestStatus.LOADING)

    @classmethod
    def success(cls) -> "RequestState":
        return cls(RequestStatus.SUCCESS)

    @classmethod
    def error(cls, reason: str) -> "RequestState":
        return cls(RequestStatus.ERROR, reason)

    @property
    def is_loading(self) -> bool:
        return self.status is RequestStatus.LOADING

    @property
    def is_error(self) -> bool:
        return self.status is RequestStatus.ERROR

    def __str__(self) -> str:
        if self.reason:
            return f"{self.status.value}({self.reason})"
        return self.status.value


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one request: a value on success, a RequestError otherwise."""

    value: Optional[T] = None
    error: Optional[RequestError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: RequestError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

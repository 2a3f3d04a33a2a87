"""Error taxonomy reported by the record manager."""
from __future__ import annotations

from typing import Dict, Optional


class RecordManagerError(Exception):
    """Base class for every error the record manager reports to callers."""


class ValidationError(RecordManagerError):
    """Input rejected locally, before any request was issued."""

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors: Dict[str, str] = dict(field_errors or {})


class NotFoundError(RecordManagerError):
    """The identifier is not in the local collection; reload to recover."""

    def __init__(self, record_id: str):
        super().__init__(f"Record {record_id!r} not found")
        self.record_id = record_id


class RequestError(RecordManagerError):
    """Transport or service failure; retrying the operation may succeed."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.reason} (HTTP {self.status_code})"
        return self.reason


class ManagerClosedError(RequestError):
    """The manager was unmounted; the response was discarded."""

    def __init__(self, reason: str = "record manager is not mounted"):
        super().__init__(reason)

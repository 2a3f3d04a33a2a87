"""
Record manager package.

Re-exports the manager, its client and the error/state types so callers
can import everything from ``user_manager.manager``.
"""

from .errors import (
    RecordManagerError,
    ValidationError,
    NotFoundError,
    RequestError,
    ManagerClosedError,
)
from .state import Operation, RequestStatus, RequestState, Result
from .models import Record
from .config import ManagerConfig
from .client import RecordServiceClient
from .record_manager import RecordManager

__all__ = [
    "RecordManagerError",
    "ValidationError",
    "NotFoundError",
    "RequestError",
    "ManagerClosedError",
    "Operation",
    "RequestStatus",
    "RequestState",
    "Result",
    "Record",
    "ManagerConfig",
    "RecordServiceClient",
    "RecordManager",
]

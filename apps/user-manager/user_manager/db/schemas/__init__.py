"""
Pydantic schemas shared by the records service and the record manager.
"""

from .records import (
    RecordStatus,
    RecordBase,
    RecordCreate,
    RecordUpdate,
    Record,
    NAME_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
)

__all__ = [
    "RecordStatus",
    "RecordBase",
    "RecordCreate",
    "RecordUpdate",
    "Record",
    "NAME_MAX_LENGTH",
    "EMAIL_MAX_LENGTH",
]

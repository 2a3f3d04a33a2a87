"""
SQLAlchemy models for the records service.

Exposes `Base`, `now_utc`, and the ORM classes.
"""

from .base import Base, now_utc  # re-export

from .records import UserRecord

__all__ = [
    "Base",
    "now_utc",
    "UserRecord",
]

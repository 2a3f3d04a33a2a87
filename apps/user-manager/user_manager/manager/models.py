"""Client-side view of a record as returned by the records service."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Record(BaseModel):
    """Immutable record snapshot.

    The store owns the schema: unknown fields it returns are kept as extras.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    name: str
    email: str
    status: str = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("record id is required")
        return str(v)

    def fields(self) -> Dict[str, Any]:
        """Return the user-editable fields (everything but id and timestamps)."""
        data = self.model_dump()
        for key in ("id", "created_at", "updated_at"):
            data.pop(key, None)
        return data

import re
import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

RecordStatus = Literal["active", "inactive"]

NAME_MAX_LENGTH = 80
EMAIL_MAX_LENGTH = 254
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def clean_name(value: str | None) -> str:
    if value is None:
        raise ValueError("name is required")
    s = str(value).strip()
    if len(s) == 0 or len(s) > NAME_MAX_LENGTH:
        raise ValueError(f"name must be 1..{NAME_MAX_LENGTH} characters")
    return s


def clean_email(value: str | None) -> str:
    if value is None:
        raise ValueError("email is required")
    s = str(value).strip()
    if len(s) == 0:
        raise ValueError("email is required")
    if len(s) > EMAIL_MAX_LENGTH or not _EMAIL_RE.match(s):
        raise ValueError("email must be a valid address")
    return s


class RecordBase(BaseModel):
    name: str
    email: str
    status: RecordStatus = "active"

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return clean_email(v)


class RecordCreate(RecordBase):
    model_config = ConfigDict(extra="forbid")


class RecordUpdate(BaseModel):
    """Partial update; only the fields provided are applied."""
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: str | None = None
    status: RecordStatus | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v):
        return clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return clean_email(v)

    @field_validator("status")
    @classmethod
    def _status(cls, v):
        if v is None:
            raise ValueError("status cannot be null")
        return v

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        return self


class Record(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    status: RecordStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)

"""Local field validation performed before any request is issued.

Uses the same schemas the records service enforces so a payload accepted
here is not rejected by the service for shape reasons.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from pydantic import ValidationError as PydanticValidationError

from user_manager.db import schemas
from user_manager.manager.errors import ValidationError


def _field_errors(exc: PydanticValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        key = str(loc[0]) if loc else "fields"
        msg = str(err.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.setdefault(key, msg)
    return errors


def _ensure_mapping(fields: Any) -> Mapping[str, Any]:
    if not isinstance(fields, Mapping):
        raise ValidationError("fields must be a mapping", {"fields": "expected a mapping of field names to values"})
    return fields


def validate_create(fields: Any) -> Dict[str, Any]:
    """Return the normalised JSON payload for a new record or raise ValidationError."""
    try:
        model = schemas.RecordCreate.model_validate(dict(_ensure_mapping(fields)))
    except PydanticValidationError as exc:
        errors = _field_errors(exc)
        raise ValidationError(f"Invalid record: {', '.join(sorted(errors))}", errors) from exc
    return model.model_dump(mode="json")


def validate_update(fields: Any) -> Dict[str, Any]:
    """Return the normalised partial payload or raise ValidationError.

    Only the provided fields end up in the payload.
    """
    try:
        model = schemas.RecordUpdate.model_validate(dict(_ensure_mapping(fields)))
    except PydanticValidationError as exc:
        errors = _field_errors(exc)
        raise ValidationError(f"Invalid update: {', '.join(sorted(errors))}", errors) from exc
    return model.model_dump(mode="json", exclude_unset=True)

"""
Record repository functions.

Implements create/read/update/delete for user records. Listing returns
rows in insertion order.
"""
from __future__ import annotations

import uuid
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from user_manager.db import models, schemas


def create_record(db: Session, record: schemas.RecordCreate):
    db_record = models.UserRecord(
        name=record.name,
        email=record.email,
        status=record.status,
    )
    db.add(db_record)
    _commit(db, "create record")
    db.refresh(db_record)
    return db_record


def get_record(db: Session, record_id: uuid.UUID):
    return db.query(models.UserRecord).filter(models.UserRecord.id == record_id).first()


def get_record_by_email(db: Session, email: str, *, exclude_id: uuid.UUID | None = None):
    q = db.query(models.UserRecord).filter(func.lower(models.UserRecord.email) == func.lower(email))
    if exclude_id is not None:
        q = q.filter(models.UserRecord.id != exclude_id)
    return q.first()


def list_records(db: Session, skip: int = 0, limit: int | None = None):
    q = db.query(models.UserRecord).order_by(models.UserRecord.seq.asc()).offset(skip)
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def update_record(db: Session, record_id: uuid.UUID, record: schemas.RecordUpdate | schemas.RecordCreate):
    """Apply the fields set on ``record``; a full RecordCreate replaces every field."""
    db_record = get_record(db, record_id)
    if db_record:
        for key, value in record.model_dump(exclude_unset=isinstance(record, schemas.RecordUpdate)).items():
            setattr(db_record, key, value)
        _commit(db, f"update record {record_id}")
        db.refresh(db_record)
    return db_record


def delete_record(db: Session, record_id: uuid.UUID) -> bool:
    try:
        db_record = get_record(db, record_id)
        if not db_record:
            return False
        db.delete(db_record)
        db.commit()
        return True
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete record {record_id}: {str(e)}")


def _commit(db: Session, action: str) -> None:
    """Commit, rolling the session back on failure.

    ``IntegrityError`` is re-raised as is so callers can map constraint
    violations (duplicate email, bad status) to a conflict.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to {action}: {str(e)}") from e

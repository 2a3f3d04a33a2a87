"""
Records API endpoints.

CRUD for user records: the remote store the record manager synchronises
with.
"""
from typing import List, Optional
import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from user_manager.db import schemas
from user_manager.db.database import get_db
from user_manager.db.repositories import records as records_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


def _parse_id(record_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid record id")


def _ensure_email_free(db: Session, email: str | None, exclude_id: uuid.UUID | None = None) -> None:
    if email is None:
        return
    if records_repo.get_record_by_email(db, email, exclude_id=exclude_id):
        raise HTTPException(status_code=409, detail="Record with this email already exists")


def _conflict(exc: IntegrityError) -> HTTPException:
    # Lost a race past _ensure_email_free, or a constraint the schema missed
    logger.warning("record_write_conflict error=%s", exc.orig)
    return HTTPException(status_code=409, detail="Record with this email already exists")


@router.get("", response_model=List[schemas.Record])
def list_records_endpoint(
    skip: int = 0,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
):
    """Every record in insertion order; `limit` pages only when given."""
    if skip < 0 or (limit is not None and (limit < 1 or limit > 1000)):
        raise HTTPException(status_code=422, detail="skip must be >= 0 and limit 1..1000")
    return records_repo.list_records(db, skip=skip, limit=limit)


@router.get("/{record_id}", response_model=schemas.Record)
def get_record_endpoint(record_id: str, db: Session = Depends(get_db)):
    db_record = records_repo.get_record(db, _parse_id(record_id))
    if not db_record:
        raise HTTPException(status_code=404, detail="Record not found")
    return db_record


@router.post("", response_model=schemas.Record, status_code=status.HTTP_201_CREATED)
def create_record_endpoint(record: schemas.RecordCreate, db: Session = Depends(get_db)):
    _ensure_email_free(db, record.email)
    try:
        created = records_repo.create_record(db, record)
    except IntegrityError as exc:
        raise _conflict(exc)
    logger.info("record_created id=%s", created.id)
    return created


@router.put("/{record_id}", response_model=schemas.Record)
def replace_record_endpoint(
    record_id: str,
    record: schemas.RecordCreate,
    db: Session = Depends(get_db),
):
    rid = _parse_id(record_id)
    if not records_repo.get_record(db, rid):
        raise HTTPException(status_code=404, detail="Record not found")
    _ensure_email_free(db, record.email, exclude_id=rid)
    try:
        updated = records_repo.update_record(db, rid, record)
    except IntegrityError as exc:
        raise _conflict(exc)
    logger.info("record_replaced id=%s", rid)
    return updated


@router.patch("/{record_id}", response_model=schemas.Record)
def update_record_endpoint(
    record_id: str,
    record: schemas.RecordUpdate,
    db: Session = Depends(get_db),
):
    rid = _parse_id(record_id)
    if not records_repo.get_record(db, rid):
        raise HTTPException(status_code=404, detail="Record not found")
    _ensure_email_free(db, record.email, exclude_id=rid)
    try:
        updated = records_repo.update_record(db, rid, record)
    except IntegrityError as exc:
        raise _conflict(exc)
    logger.info("record_updated id=%s fields=%s", rid, sorted(record.model_fields_set))
    return updated


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_record_endpoint(record_id: str, db: Session = Depends(get_db)):
    rid = _parse_id(record_id)
    ok = records_repo.delete_record(db, rid)
    if not ok:
        raise HTTPException(status_code=404, detail="Record not found")
    logger.info("record_deleted id=%s", rid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

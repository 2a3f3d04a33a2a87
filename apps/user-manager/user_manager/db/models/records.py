import uuid
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, Uuid
from .base import Base, now_utc


class UserRecord(Base):
    __tablename__ = 'records'
    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name='ck_records_status'),
    )
    # Insertion order; the public identifier is `id`
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(Uuid(as_uuid=True), nullable=False, unique=True, index=True, default=uuid.uuid4)
    name = Column(String(80), nullable=False)
    email = Column(String(254), nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default='active')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

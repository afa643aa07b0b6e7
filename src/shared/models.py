import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Uuid

# Generic Uuid: native UUID on Postgres, CHAR(32) on a local SQLite workspace


class UUIDMixin:
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RecordMixin(UUIDMixin, TimestampMixin):
    """UUID key plus created/updated timestamps, shared by cases, events and audit rows."""

from enum import Enum
from sqlalchemy import Column, String, ForeignKey, JSON, Uuid
from sqlalchemy import Enum as SAEnum
from src.database import Base
from src.shared.models import RecordMixin


class AuditEventType(str, Enum):
    CASE_CREATED = "CASE_CREATED"
    DOCUMENT_INGESTED = "DOCUMENT_INGESTED"
    DUPLICATE_SKIPPED_EXACT = "DUPLICATE_SKIPPED_EXACT"
    DUPLICATE_SKIPPED_SEMANTIC = "DUPLICATE_SKIPPED_SEMANTIC"
    INGESTION_FAILED = "INGESTION_FAILED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"
    EVENTS_COMMITTED = "EVENTS_COMMITTED"


class AuditEvent(Base, RecordMixin):
    __tablename__ = "audit_events"

    case_id = Column(ForeignKey("cases.id"), nullable=False, index=True)
    event_type = Column(SAEnum(AuditEventType), nullable=False)
    document_id = Column(Uuid(as_uuid=True), nullable=True)
    filename = Column(String, nullable=True)
    detail = Column(JSON, nullable=True)

from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, LargeBinary, UniqueConstraint, Uuid, Enum as SAEnum
from src.database import Base
from src.shared.models import UUIDMixin


class MediaKind(str, Enum):
    TEXT = "text"
    PDF = "pdf"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class Document(Base, UUIDMixin):
    """Evidence metadata. Small and always listed; content lives in ``DocumentBlob``."""
    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("case_id", "sequence_number", name="uq_documents_case_sequence"),
    )

    case_id = Column(ForeignKey("cases.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    sequence_number = Column(Integer, nullable=False)
    bates_number = Column(String, nullable=False)
    media_kind = Column(SAEnum(MediaKind), nullable=True)
    mime_type = Column(String, nullable=True)
    original_filename = Column(String, nullable=True)
    document_date = Column(String, nullable=True)
    summary = Column(Text, nullable=True)
    digest = Column(String(64), nullable=False, index=True)  # SHA-256, written once
    reliability_score = Column(Integer, default=100, nullable=False)
    added_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class DocumentBlob(Base):
    """Heavy document content, keyed by the owning document's id."""
    __tablename__ = "document_blobs"

    id = Column(Uuid(as_uuid=True), primary_key=True)
    text = Column(Text, nullable=True)
    media_payload = Column(LargeBinary, nullable=True)

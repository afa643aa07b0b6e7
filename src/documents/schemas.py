from uuid import UUID, uuid4
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from src.documents.models import MediaKind


class DocumentMetadata(BaseModel):
    id: UUID
    case_id: UUID
    title: str
    sequence_number: int
    bates_number: str
    media_kind: Optional[MediaKind] = None
    mime_type: Optional[str] = None
    original_filename: Optional[str] = None
    document_date: Optional[str] = None
    summary: Optional[str] = None
    digest: str
    reliability_score: int = 100
    added_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentContent(BaseModel):
    id: UUID
    text: Optional[str] = None
    media_payload: Optional[bytes] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentContentResponse(BaseModel):
    id: UUID
    text: Optional[str] = None
    media_base64: Optional[str] = None


class EvidenceDocument(BaseModel):
    """A full document on its way into the store: metadata fields plus content.

    ``sequence_number`` and ``bates_number`` are assigned by the store on first
    insert.
    """
    id: UUID = Field(default_factory=uuid4)
    case_id: UUID
    title: str
    media_kind: Optional[MediaKind] = None
    mime_type: Optional[str] = None
    original_filename: Optional[str] = None
    document_date: Optional[str] = None
    summary: Optional[str] = None
    digest: str
    reliability_score: int = Field(default=100, ge=0, le=100)
    added_at: datetime = Field(default_factory=datetime.utcnow)
    text: Optional[str] = None
    media_payload: Optional[bytes] = None

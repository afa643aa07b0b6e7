from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.documents.models import MediaKind
from src.documents.schemas import DocumentMetadata
from src.timeline.schemas import TimelineEventData


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass
class EvidenceUpload:
    """One raw file as received from the caller."""
    filename: str
    content: bytes
    content_type: Optional[str] = None
    title: Optional[str] = None  # caller-supplied title, wins over the extracted one


@dataclass
class EvidenceItem:
    """A prepared upload: media kind resolved, text extracted, LLM attachments built."""
    filename: str
    raw: bytes
    mime_type: str
    media_kind: Optional[MediaKind] = None
    text: Optional[str] = None
    attachments: List[dict] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Provider output shapes (validated at the client boundary)
# ---------------------------------------------------------------------------

class DocumentIdentity(BaseModel):
    title: str = ""
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD or empty if unknown")
    type: Optional[str] = None
    summary: str = ""
    is_duplicate: bool = False
    duplicate_of: Optional[str] = None


class ExtractedEvent(BaseModel):
    date: Optional[str] = Field(default=None, description="YYYY-MM-DD or empty if unknown")
    title: str
    actor: Optional[str] = None
    cause: str = ""
    effect: str = ""
    claim: str = ""
    relief: str = ""
    legal_significance: Optional[str] = None
    citations: List[str] = []
    source_quote: Optional[str] = Field(default=None, description="Exact phrase from the source proving the event")
    needs_clarification: bool = False
    clarification_question: Optional[str] = None


class EvidenceExtraction(BaseModel):
    title: Optional[str] = None
    document_date: Optional[str] = None
    summary: Optional[str] = None
    events: List[ExtractedEvent] = []


# ---------------------------------------------------------------------------
# Deduplication
# ---------------------------------------------------------------------------

class DuplicateKind(str, Enum):
    EXACT = "exact"
    SEMANTIC = "semantic"
    NOVEL = "novel"


@dataclass
class DuplicateCheck:
    kind: DuplicateKind
    digest: str
    match_title: Optional[str] = None
    identity: Optional[DocumentIdentity] = None

    @property
    def is_duplicate(self) -> bool:
        return self.kind != DuplicateKind.NOVEL


# ---------------------------------------------------------------------------
# Batch report
# ---------------------------------------------------------------------------

class FileState(str, Enum):
    RECEIVED = "received"
    HASHED = "hashed"
    EXACT_DUPLICATE = "exact_duplicate"
    SEMANTIC_DUPLICATE = "semantic_duplicate"
    EXTRACTING = "extracting"
    PERSISTED = "persisted"
    FAILED = "failed"


class DuplicateEntry(BaseModel):
    filename: str
    match: str
    kind: DuplicateKind


class FailureEntry(BaseModel):
    filename: str
    error: str


class FileOutcome(BaseModel):
    filename: str
    state: FileState = FileState.RECEIVED
    digest: Optional[str] = None
    document_id: Optional[UUID] = None
    duplicate_of: Optional[str] = None
    error: Optional[str] = None


class BatchReport(BaseModel):
    files_processed: int = 0
    added: int = 0
    skipped_exact_duplicate: int = 0
    skipped_semantic_duplicate: int = 0
    failed: int = 0
    outcomes: List[FileOutcome] = []
    duplicates: List[DuplicateEntry] = []
    failures: List[FailureEntry] = []
    documents: List[DocumentMetadata] = []
    draft_events: List[TimelineEventData] = []


class PastedText(BaseModel):
    text: str = Field(min_length=1)
    title: Optional[str] = None

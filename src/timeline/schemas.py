from datetime import datetime
from uuid import UUID, uuid4
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class TimelineEventBase(BaseModel):
    date: Optional[str] = None
    title: str
    actor: Optional[str] = None
    cause: str = ""
    effect: str = ""
    claim: str = ""
    relief: str = ""
    legal_significance: Optional[str] = None
    citations: List[str] = []
    source_document_id: Optional[UUID] = None
    source_quote: Optional[str] = None
    needs_clarification: bool = False
    clarification_question: Optional[str] = None


class TimelineEventCreate(TimelineEventBase):
    pass


class TimelineEventUpdate(BaseModel):
    """Partial edit of a draft. Omitted fields are left alone."""
    date: Optional[str] = None
    title: Optional[str] = None
    actor: Optional[str] = None
    cause: Optional[str] = None
    effect: Optional[str] = None
    claim: Optional[str] = None
    relief: Optional[str] = None
    legal_significance: Optional[str] = None
    citations: Optional[List[str]] = None
    source_quote: Optional[str] = None
    needs_clarification: Optional[bool] = None
    clarification_question: Optional[str] = None

    @field_validator("title", "cause", "effect", "claim", "relief", "citations", "needs_clarification")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class TimelineEventData(TimelineEventBase):
    id: UUID = Field(default_factory=uuid4)
    case_id: UUID
    committed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

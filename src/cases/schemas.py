from datetime import datetime
from uuid import UUID, uuid4
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class CaseBase(BaseModel):
    name: str
    description: Optional[str] = None


class CaseCreate(CaseBase):
    is_active: bool = False


class CaseUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CaseData(CaseBase):
    """Whole case record, as stored and as returned by the API."""
    id: UUID = Field(default_factory=uuid4)
    is_active: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None  # last modified

    model_config = ConfigDict(from_attributes=True)

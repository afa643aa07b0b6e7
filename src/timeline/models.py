from sqlalchemy import Column, String, Text, Boolean, ForeignKey, JSON, Uuid
from src.database import Base
from src.shared.models import RecordMixin


class TimelineEvent(Base, RecordMixin):
    """A factual assertion extracted from a document or entered by hand."""
    __tablename__ = "timeline_events"

    case_id = Column(ForeignKey("cases.id"), nullable=False, index=True)
    date = Column(String, nullable=True)  # YYYY-MM-DD, empty until resolved
    title = Column(String, nullable=False)
    actor = Column(String, nullable=True)
    cause = Column(Text, nullable=False, default="")
    effect = Column(Text, nullable=False, default="")
    claim = Column(Text, nullable=False, default="")
    relief = Column(Text, nullable=False, default="")
    legal_significance = Column(Text, nullable=True)
    citations = Column(JSON, nullable=False, default=list)
    # Not a foreign key: deleting a document leaves the reference dangling
    source_document_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    source_quote = Column(Text, nullable=True)
    needs_clarification = Column(Boolean, default=False, nullable=False)
    clarification_question = Column(Text, nullable=True)
    committed = Column(Boolean, default=False, nullable=False)

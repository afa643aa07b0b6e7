import logging
import re
from typing import List, Optional
from uuid import UUID

from src.ingestion.dedup import format_content
from src.ingestion.prompts import EXTRACTION_SYSTEM_PROMPT, EXTRACTION_USER_PROMPT
from src.ingestion.schemas import DocumentIdentity, EvidenceExtraction, EvidenceItem, ExtractedEvent
from src.llm.client import ExtractionClient
from src.timeline.schemas import TimelineEventData

logger = logging.getLogger(__name__)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DEFAULT_CLARIFICATION = "What is the exact date (YYYY-MM-DD) of this event?"


def is_resolved_date(value: Optional[str]) -> bool:
    return bool(value and ISO_DATE_RE.match(value.strip()))


class EvidenceExtractor:
    """Asks the model for document identity and timeline events in one structured call."""

    def __init__(self, client: ExtractionClient):
        self.client = client

    async def extract(self, item: EvidenceItem, identity: Optional[DocumentIdentity] = None) -> EvidenceExtraction:
        known_identity = ""
        if identity is not None:
            known_identity = f'Known title: "{identity.title}", date: {identity.date or "Unknown"}'
        return await self.client.generate_structured(
            EXTRACTION_SYSTEM_PROMPT,
            EXTRACTION_USER_PROMPT.format(
                filename=item.filename,
                known_identity=known_identity,
                content=format_content(item),
            ),
            EvidenceExtraction,
            attachments=item.attachments,
        )

    @staticmethod
    def to_draft_events(
        events: List[ExtractedEvent],
        case_id: UUID,
        source_document_id: Optional[UUID],
    ) -> List[TimelineEventData]:
        """Turn validated model output into draft timeline events linked to their source."""
        drafts = []
        for event in events:
            data = event.model_dump()
            if not is_resolved_date(event.date):
                data["needs_clarification"] = True
                data["clarification_question"] = event.clarification_question or DEFAULT_CLARIFICATION
            drafts.append(TimelineEventData(
                **data,
                case_id=case_id,
                source_document_id=source_document_id,
                committed=False,
            ))
        return drafts

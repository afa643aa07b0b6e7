import logging
from typing import List, Optional
from uuid import UUID

from src.ingestion.extraction import DEFAULT_CLARIFICATION, is_resolved_date
from src.shared.exceptions import ClarificationPending, EventCommittedError, NotFoundError
from src.storage.persistence import PersistenceLayer
from src.timeline.schemas import TimelineEventCreate, TimelineEventData, TimelineEventUpdate

logger = logging.getLogger(__name__)


class TimelineService:
    """Review flow for extracted events: edit or discard drafts, then commit them."""

    def __init__(self, persistence: PersistenceLayer):
        self.persistence = persistence

    async def list_events(self, case_id: UUID, committed: Optional[bool] = None) -> List[TimelineEventData]:
        return await self.persistence.list_events(case_id, committed)

    async def _get_draft(self, case_id: UUID, event_id: UUID) -> TimelineEventData:
        event = await self.persistence.get_event(event_id)
        if event is None or event.case_id != case_id:
            raise NotFoundError(f"Event {event_id} not found")
        if event.committed:
            raise EventCommittedError(f"Event {event_id} is committed and cannot be changed")
        return event

    async def update_draft(self, case_id: UUID, event_id: UUID, changes: TimelineEventUpdate) -> TimelineEventData:
        event = await self._get_draft(case_id, event_id)
        update_data = changes.model_dump(exclude_unset=True)
        updated = event.model_copy(update=update_data)

        # A concrete date answers the clarification question
        if "date" in update_data and is_resolved_date(updated.date):
            updated.date = updated.date.strip()
            updated.needs_clarification = False
            updated.clarification_question = None

        return await self.persistence.save_event(updated)

    async def discard_draft(self, case_id: UUID, event_id: UUID) -> None:
        await self._get_draft(case_id, event_id)
        await self.persistence.delete_event(event_id)
        logger.info("Discarded draft event %s", event_id)

    async def add_manual_event(self, case_id: UUID, data: TimelineEventCreate) -> TimelineEventData:
        if await self.persistence.get_case(case_id) is None:
            raise NotFoundError(f"Case {case_id} not found")
        event = TimelineEventData(**data.model_dump(), case_id=case_id, committed=False)
        if not is_resolved_date(event.date) and not event.needs_clarification:
            event.needs_clarification = True
            event.clarification_question = event.clarification_question or DEFAULT_CLARIFICATION
        return await self.persistence.save_event(event)

    async def commit_drafts(self, case_id: UUID) -> List[TimelineEventData]:
        drafts = await self.persistence.list_events(case_id, committed=False)
        pending = [
            event.id for event in drafts
            if event.needs_clarification or not is_resolved_date(event.date)
        ]
        if pending:
            raise ClarificationPending(pending)
        committed = await self.persistence.commit_events(case_id)
        logger.info("Committed %d event(s) for case %s", len(committed), case_id)
        return committed

from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.audit.models import AuditEventType
from src.shared.exceptions import ClarificationPending, EventCommittedError, NotFoundError
from src.timeline.schemas import TimelineEventCreate, TimelineEventData, TimelineEventUpdate
from src.timeline.service import TimelineService


@pytest.fixture
def service(persistence) -> TimelineService:
    return TimelineService(persistence)


async def draft(persistence, case, **kwargs) -> TimelineEventData:
    data = {"title": "Arrest", "date": "2024-01-05", **kwargs}
    return await persistence.save_event(TimelineEventData(case_id=case.id, **data))


@pytest.mark.asyncio
async def test_setting_a_date_resolves_clarification(service, persistence, case):
    event = await draft(persistence, case, date=None, needs_clarification=True,
                        clarification_question="When did the arrest happen?")

    updated = await service.update_draft(case.id, event.id, TimelineEventUpdate(date="2024-01-05"))

    assert updated.date == "2024-01-05"
    assert updated.needs_clarification is False
    assert updated.clarification_question is None


@pytest.mark.asyncio
async def test_vague_date_keeps_clarification(service, persistence, case):
    event = await draft(persistence, case, date=None, needs_clarification=True,
                        clarification_question="When?")

    updated = await service.update_draft(case.id, event.id, TimelineEventUpdate(date="January 2024"))

    assert updated.needs_clarification is True


@pytest.mark.asyncio
async def test_partial_update_leaves_other_fields(service, persistence, case):
    event = await draft(persistence, case, actor="Officer Reyes", citations=["Terry v. Ohio"])

    updated = await service.update_draft(case.id, event.id, TimelineEventUpdate(title="Arrest at 5th St"))

    assert updated.title == "Arrest at 5th St"
    assert updated.actor == "Officer Reyes"
    assert updated.citations == ["Terry v. Ohio"]


def test_update_rejects_null_for_required_fields():
    with pytest.raises(ValidationError):
        TimelineEventUpdate(title=None)
    assert TimelineEventUpdate(date=None).model_dump(exclude_unset=True) == {"date": None}


@pytest.mark.asyncio
async def test_committed_events_are_immutable(service, persistence, case):
    event = await draft(persistence, case)
    await service.commit_drafts(case.id)

    with pytest.raises(EventCommittedError):
        await service.update_draft(case.id, event.id, TimelineEventUpdate(title="Changed"))
    with pytest.raises(EventCommittedError):
        await service.discard_draft(case.id, event.id)


@pytest.mark.asyncio
async def test_event_from_another_case_is_not_found(service, persistence, case):
    event = await draft(persistence, case)
    with pytest.raises(NotFoundError):
        await service.update_draft(uuid4(), event.id, TimelineEventUpdate(title="Changed"))


@pytest.mark.asyncio
async def test_discard_draft(service, persistence, case):
    event = await draft(persistence, case)
    await service.discard_draft(case.id, event.id)
    assert await persistence.get_event(event.id) is None


@pytest.mark.asyncio
async def test_manual_event_without_date_needs_clarification(service, case):
    event = await service.add_manual_event(case.id, TimelineEventCreate(title="Phone call from witness"))

    assert event.committed is False
    assert event.needs_clarification is True
    assert event.clarification_question


@pytest.mark.asyncio
async def test_manual_event_for_unknown_case(service):
    with pytest.raises(NotFoundError):
        await service.add_manual_event(uuid4(), TimelineEventCreate(title="Phone call", date="2024-01-07"))


@pytest.mark.asyncio
async def test_commit_blocked_while_clarification_pending(service, persistence, case):
    await draft(persistence, case)
    pending = await draft(persistence, case, title="Prior warning", date=None, needs_clarification=True)

    with pytest.raises(ClarificationPending) as exc_info:
        await service.commit_drafts(case.id)

    assert exc_info.value.event_ids == [pending.id]
    assert await service.list_events(case.id, committed=True) == []


@pytest.mark.asyncio
async def test_commit_moves_all_drafts(service, persistence, case):
    await draft(persistence, case)
    await draft(persistence, case, title="Arraignment", date="2024-01-08")

    committed = await service.commit_drafts(case.id)

    assert len(committed) == 2
    assert all(e.committed for e in await service.list_events(case.id))
    audit = await persistence.list_audit_events(case.id)
    assert [a.event_type for a in audit] == [AuditEventType.EVENTS_COMMITTED]

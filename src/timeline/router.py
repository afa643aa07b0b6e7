from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from src.dependencies import get_timeline_service
from src.timeline.schemas import TimelineEventCreate, TimelineEventData, TimelineEventUpdate
from src.timeline.service import TimelineService

router = APIRouter(prefix="/cases/{case_id}/events", tags=["timeline"])


@router.get("", response_model=List[TimelineEventData])
async def list_events(
    case_id: UUID,
    committed: Optional[bool] = None,
    service: TimelineService = Depends(get_timeline_service),
):
    return await service.list_events(case_id, committed)


@router.post("", response_model=TimelineEventData, status_code=201)
async def create_event(
    case_id: UUID,
    event: TimelineEventCreate,
    service: TimelineService = Depends(get_timeline_service),
):
    """Add a hand-entered event as a draft."""
    return await service.add_manual_event(case_id, event)


@router.post("/commit", response_model=List[TimelineEventData])
async def commit_events(case_id: UUID, service: TimelineService = Depends(get_timeline_service)):
    return await service.commit_drafts(case_id)


@router.patch("/{event_id}", response_model=TimelineEventData)
async def update_event(
    case_id: UUID,
    event_id: UUID,
    changes: TimelineEventUpdate,
    service: TimelineService = Depends(get_timeline_service),
):
    return await service.update_draft(case_id, event_id, changes)


@router.delete("/{event_id}", status_code=204)
async def discard_event(
    case_id: UUID,
    event_id: UUID,
    service: TimelineService = Depends(get_timeline_service),
):
    await service.discard_draft(case_id, event_id)

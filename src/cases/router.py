from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from src.audit.models import AuditEventType
from src.cases.schemas import CaseCreate, CaseData, CaseUpdate
from src.dependencies import get_persistence
from src.storage.persistence import PersistenceLayer

router = APIRouter(prefix="/cases", tags=["cases"])


@router.get("", response_model=List[CaseData])
async def list_cases(persistence: PersistenceLayer = Depends(get_persistence)):
    return await persistence.list_cases()


@router.post("", response_model=CaseData, status_code=201)
async def create_case(
    case_in: CaseCreate,
    persistence: PersistenceLayer = Depends(get_persistence),
):
    """Create a case. The first case created becomes the active one."""
    is_active = case_in.is_active or await persistence.get_active_case() is None
    case = CaseData(name=case_in.name, description=case_in.description, is_active=is_active)
    saved = await persistence.save_case(case)
    await persistence.record_audit(saved.id, AuditEventType.CASE_CREATED, detail={"name": saved.name})
    return saved


@router.get("/active", response_model=CaseData)
async def get_active_case(persistence: PersistenceLayer = Depends(get_persistence)):
    case = await persistence.get_active_case()
    if not case:
        raise HTTPException(status_code=404, detail="No active case")
    return case


@router.get("/{case_id}", response_model=CaseData)
async def get_case(case_id: UUID, persistence: PersistenceLayer = Depends(get_persistence)):
    case = await persistence.get_case(case_id)
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    return case


@router.put("/{case_id}", response_model=CaseData)
async def update_case(
    case_id: UUID,
    case_in: CaseUpdate,
    persistence: PersistenceLayer = Depends(get_persistence),
):
    case = await persistence.get_case(case_id)
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    updated = case.model_copy(update=case_in.model_dump(exclude_unset=True))
    return await persistence.save_case(updated)


@router.post("/{case_id}/activate", response_model=CaseData)
async def activate_case(case_id: UUID, persistence: PersistenceLayer = Depends(get_persistence)):
    return await persistence.set_active_case(case_id)


@router.delete("/{case_id}", status_code=204)
async def delete_case(case_id: UUID, persistence: PersistenceLayer = Depends(get_persistence)):
    """Delete a case with all its documents, events and audit history."""
    if not await persistence.delete_case(case_id):
        raise HTTPException(status_code=404, detail="Case not found")

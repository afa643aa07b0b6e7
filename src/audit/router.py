from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from src.audit.schemas import AuditEventResponse
from src.dependencies import get_persistence
from src.storage.persistence import PersistenceLayer

router = APIRouter(prefix="/cases", tags=["audit"])


@router.get("/{case_id}/audit", response_model=List[AuditEventResponse])
async def list_audit_events(
    case_id: UUID,
    persistence: PersistenceLayer = Depends(get_persistence),
):
    return await persistence.list_audit_events(case_id)

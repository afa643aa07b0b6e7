from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from src.dependencies import get_orchestrator
from src.ingestion.orchestrator import IngestionOrchestrator
from src.ingestion.schemas import BatchReport, EvidenceUpload, PastedText

router = APIRouter(prefix="/cases/{case_id}/evidence", tags=["evidence"])


@router.post("", response_model=BatchReport)
async def ingest_evidence(
    case_id: UUID,
    files: List[UploadFile] = File(...),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    """Ingest a batch of files. Every file gets an entry in the report, whatever happens to it."""
    uploads = []
    for file in files:
        if not file.filename:
            raise HTTPException(status_code=400, detail="No filename provided")
        uploads.append(EvidenceUpload(
            filename=file.filename,
            content=await file.read(),
            content_type=file.content_type,
        ))
    return await orchestrator.ingest_batch(uploads, case_id)


@router.post("/text", response_model=BatchReport)
async def ingest_pasted_text(
    case_id: UUID,
    pasted: PastedText,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.ingest_text(pasted.text, case_id, title=pasted.title)

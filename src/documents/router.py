import base64
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from src.dependencies import get_persistence
from src.documents.schemas import DocumentContentResponse, DocumentMetadata
from src.storage.persistence import PersistenceLayer

router = APIRouter(prefix="/cases/{case_id}/documents", tags=["documents"])


async def _get_case_document(persistence: PersistenceLayer, case_id: UUID, document_id: UUID) -> DocumentMetadata:
    doc = await persistence.get_document_metadata(document_id)
    if not doc or doc.case_id != case_id:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc


@router.get("", response_model=List[DocumentMetadata])
async def list_documents(case_id: UUID, persistence: PersistenceLayer = Depends(get_persistence)):
    """List evidence metadata for a case, in Bates order. Content is not loaded."""
    return await persistence.list_document_metadata(case_id)


@router.get("/{document_id}", response_model=DocumentMetadata)
async def get_document(
    case_id: UUID,
    document_id: UUID,
    persistence: PersistenceLayer = Depends(get_persistence),
):
    return await _get_case_document(persistence, case_id, document_id)


@router.get("/{document_id}/content", response_model=DocumentContentResponse)
async def get_document_content(
    case_id: UUID,
    document_id: UUID,
    persistence: PersistenceLayer = Depends(get_persistence),
):
    """Extracted text plus the original payload (base64) for binary evidence."""
    await _get_case_document(persistence, case_id, document_id)
    content = await persistence.get_document_content(document_id)
    if content is None:
        raise HTTPException(status_code=404, detail="Document content not found")
    media = base64.b64encode(content.media_payload).decode("ascii") if content.media_payload else None
    return DocumentContentResponse(id=content.id, text=content.text, media_base64=media)


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    case_id: UUID,
    document_id: UUID,
    persistence: PersistenceLayer = Depends(get_persistence),
):
    await _get_case_document(persistence, case_id, document_id)
    await persistence.delete_document(document_id, audited=True)

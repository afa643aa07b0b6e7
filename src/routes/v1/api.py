from fastapi import APIRouter

from src.cases.router import router as cases_router
from src.documents.router import router as documents_router
from src.ingestion.router import router as evidence_router
from src.timeline.router import router as timeline_router
from src.audit.router import router as audit_router
from src.llm.router import router as llm_router

api_router = APIRouter()

api_router.include_router(cases_router)
api_router.include_router(documents_router)
api_router.include_router(evidence_router)
api_router.include_router(timeline_router)
api_router.include_router(audit_router)
api_router.include_router(llm_router)

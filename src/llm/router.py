from fastapi import APIRouter, Depends, HTTPException

from src.dependencies import get_extraction_client
from src.llm.client import ExtractionClient
from src.llm.schemas import LLMSettingsResponse, LLMSettingsUpdate, LLMTestRequest, LLMTestResponse
from src.llm.service import LLMSettingsService

router = APIRouter(prefix="/llm", tags=["llm"])


@router.get("/settings", response_model=LLMSettingsResponse)
async def get_llm_settings(client: ExtractionClient = Depends(get_extraction_client)):
    service = LLMSettingsService(client)
    return service.get_effective_settings()


@router.put("/settings", response_model=LLMSettingsResponse)
async def update_llm_settings(
    update: LLMSettingsUpdate,
    client: ExtractionClient = Depends(get_extraction_client),
):
    service = LLMSettingsService(client)
    try:
        return service.update_settings(update)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/test", response_model=LLMTestResponse)
async def test_llm(
    request: LLMTestRequest,
    client: ExtractionClient = Depends(get_extraction_client),
):
    """One round trip through the selected provider (with fallback)."""
    service = LLMSettingsService(client)
    return await service.test_connection(request.prompt)

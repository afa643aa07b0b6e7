"""Request-scoped access to the services built at startup (see ``src.main.lifespan``)."""
from fastapi import Depends, Request

from src.ingestion.orchestrator import IngestionOrchestrator
from src.llm.client import ExtractionClient
from src.storage.persistence import PersistenceLayer
from src.timeline.service import TimelineService


def get_persistence(request: Request) -> PersistenceLayer:
    return request.app.state.persistence


def get_extraction_client(request: Request) -> ExtractionClient:
    return request.app.state.extraction_client


def get_orchestrator(
    persistence: PersistenceLayer = Depends(get_persistence),
    client: ExtractionClient = Depends(get_extraction_client),
) -> IngestionOrchestrator:
    return IngestionOrchestrator(persistence, client)


def get_timeline_service(persistence: PersistenceLayer = Depends(get_persistence)) -> TimelineService:
    return TimelineService(persistence)

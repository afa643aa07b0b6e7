import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import settings
from src.llm.client import ExtractionClient
from src.llm.schemas import LLMConfig
from src.shared.exceptions import (
    ClarificationPending,
    EventCommittedError,
    ExtractionError,
    NoActiveCaseError,
    NotFoundError,
    StorageError,
    StorageUnavailable,
    StorageWriteFailed,
)
from src.storage.persistence import PersistenceLayer

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    persistence = PersistenceLayer()
    await persistence.init()
    app.state.persistence = persistence
    app.state.extraction_client = ExtractionClient(LLMConfig.from_settings())
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    try:
        yield
    finally:
        await persistence.close()


def _error(status_code: int, detail, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(NoActiveCaseError)
    async def no_active_case_handler(request: Request, exc: NoActiveCaseError):
        return _error(409, str(exc))

    @app.exception_handler(EventCommittedError)
    async def committed_handler(request: Request, exc: EventCommittedError):
        return _error(409, str(exc))

    @app.exception_handler(ClarificationPending)
    async def clarification_handler(request: Request, exc: ClarificationPending):
        return _error(409, str(exc), event_ids=[str(event_id) for event_id in exc.event_ids])

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
        logger.error("Storage unavailable: %s", exc)
        return _error(503, str(exc))

    @app.exception_handler(StorageWriteFailed)
    async def storage_write_handler(request: Request, exc: StorageWriteFailed):
        return _error(500, str(exc))

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError):
        return _error(500, str(exc))

    @app.exception_handler(ExtractionError)
    async def extraction_handler(request: Request, exc: ExtractionError):
        return _error(502, str(exc))


def create_app(use_lifespan: bool = True) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan if use_lifespan else None,
    )

    from src.routes.v1.api import api_router

    app.include_router(api_router, prefix=settings.API_V1_STR)
    register_exception_handlers(app)

    # Set all CORS enabled origins
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    def health_check():
        return {"status": "ok", "version": settings.VERSION}

    return app


app = create_app()

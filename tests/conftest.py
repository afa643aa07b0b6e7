import json
from typing import AsyncGenerator, Dict, List, Union

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from langchain_core.messages import AIMessage

from src.cases.schemas import CaseData
from src.ingestion.orchestrator import IngestionOrchestrator
from src.llm.client import ExtractionClient
from src.llm.schemas import LLMConfig, ProviderConfig
from src.main import create_app
from src.storage.persistence import PersistenceLayer

# A real SQLite file per test (aiosqlite) stands in for Postgres: same ORM,
# same transactions, no server needed.


class ScriptedChatModel:
    """Chat model double. Replies are consumed in order; an Exception reply is raised."""

    def __init__(self, name: str):
        self.name = name
        self.replies: List[Union[str, Exception]] = []
        self.calls: List[list] = []

    def script(self, *replies: Union[str, dict, Exception]) -> "ScriptedChatModel":
        for reply in replies:
            self.replies.append(json.dumps(reply) if isinstance(reply, dict) else reply)
        return self

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if not self.replies:
            raise AssertionError(f"Unexpected call to {self.name} model")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return AIMessage(content=reply)


@pytest.fixture
def models() -> Dict[str, ScriptedChatModel]:
    """Scripted models keyed by role."""
    return {role: ScriptedChatModel(role) for role in ("primary", "secondary", "repair")}


@pytest.fixture
def llm_config() -> LLMConfig:
    return LLMConfig(
        primary=ProviderConfig(provider="openai", model="gpt-4o", api_key="sk-test"),
        secondary=ProviderConfig(provider="anthropic", model="claude-sonnet-4-20250514", api_key="sk-ant-test"),
        repair=ProviderConfig(provider="ollama", model="gemma3:4b", endpoint="http://localhost:11434"),
    )


@pytest.fixture
def extraction_client(llm_config, models) -> ExtractionClient:
    by_provider = {
        "openai": models["primary"],
        "anthropic": models["secondary"],
        "ollama": models["repair"],
    }
    return ExtractionClient(llm_config, model_factory=lambda config, json_mode=False: by_provider[config.provider])


@pytest_asyncio.fixture(scope="function")
async def persistence(tmp_path) -> AsyncGenerator[PersistenceLayer, None]:
    """Fresh evidence store for each test."""
    layer = PersistenceLayer(database_url=f"sqlite+aiosqlite:///{tmp_path / 'casefile.db'}", bates_prefix="DEF")
    await layer.init(create_schema=True)
    yield layer
    await layer.close()


@pytest_asyncio.fixture
async def case(persistence) -> CaseData:
    return await persistence.save_case(CaseData(name="State v. Doe", is_active=True))


@pytest.fixture
def orchestrator(persistence, extraction_client) -> IngestionOrchestrator:
    return IngestionOrchestrator(persistence, extraction_client)


@pytest_asyncio.fixture(scope="function")
async def async_client(persistence, extraction_client) -> AsyncGenerator[AsyncClient, None]:
    """Client for testing API endpoints against the test store and scripted models."""
    app = create_app(use_lifespan=False)
    app.state.persistence = persistence
    app.state.extraction_client = extraction_client

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

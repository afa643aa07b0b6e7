from typing import List, Optional
from pydantic import PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Casefile Evidence Backend"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/v1"
    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "casefile"
    POSTGRES_PORT: int = 5432
    # Full SQLAlchemy URL, e.g. sqlite+aiosqlite:///./casefile.db for a local workspace
    DATABASE_URL: Optional[str] = None
    AUTO_CREATE_SCHEMA: bool = True

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        ))

    # Evidence
    BATES_PREFIX: str = "DEF"
    # Hash only the first N bytes of very large payloads (None = whole payload)
    HASH_PREFIX_BYTES: Optional[int] = None

    # LLM roles
    LLM_PROVIDER_PRIMARY: str = "openai"
    LLM_PROVIDER_SECONDARY: Optional[str] = "anthropic"
    LLM_PROVIDER_REPAIR: Optional[str] = None  # defaults to the primary provider

    # Ollama
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL_PRIMARY: str = "gpt-oss:20b"
    OLLAMA_MODEL_SECONDARY: str = "gemma3:12b"
    OLLAMA_MODEL_REPAIR: str = "gemma3:4b"

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL_PRIMARY: str = "gpt-4o"
    OPENAI_MODEL_SECONDARY: str = "gpt-4o"
    OPENAI_MODEL_REPAIR: str = "gpt-4o-mini"

    # Azure OpenAI
    AZURE_OPENAI_API_KEY: Optional[str] = None
    AZURE_OPENAI_ENDPOINT: Optional[str] = None
    AZURE_OPENAI_API_VERSION: str = "2024-10-21"
    AZURE_OPENAI_MODEL_PRIMARY: str = "gpt-4o"
    AZURE_OPENAI_MODEL_SECONDARY: str = "gpt-4o"
    AZURE_OPENAI_MODEL_REPAIR: str = "gpt-4o-mini"

    # Anthropic
    ANTHROPIC_API_KEY: Optional[str] = None
    ANTHROPIC_MODEL_PRIMARY: str = "claude-sonnet-4-20250514"
    ANTHROPIC_MODEL_SECONDARY: str = "claude-sonnet-4-20250514"
    ANTHROPIC_MODEL_REPAIR: str = "claude-3-5-haiku-latest"

    # Azure AI Foundry (Anthropic models)
    AZURE_FOUNDRY_API_KEY: Optional[str] = None
    AZURE_FOUNDRY_ENDPOINT: Optional[str] = None
    AZURE_FOUNDRY_MODEL_PRIMARY: str = "claude-sonnet-4-5"
    AZURE_FOUNDRY_MODEL_SECONDARY: str = "claude-sonnet-4-5"
    AZURE_FOUNDRY_MODEL_REPAIR: str = "claude-haiku-4-5"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()

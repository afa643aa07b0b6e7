from __future__ import annotations

from typing import TYPE_CHECKING

from src.config import settings
from src.llm.schemas import ProviderConfig

if TYPE_CHECKING:
    from langchain_core.language_models.chat_models import BaseChatModel

# Valid provider identifiers
VALID_PROVIDERS = ("ollama", "openai", "azure_openai", "anthropic", "azure_foundry")


# ---------------------------------------------------------------------------
# Chat model constructor (lazy imports to avoid hard dep on unused packages)
# ---------------------------------------------------------------------------

def create_chat_model(config: ProviderConfig, *, json_mode: bool = False) -> BaseChatModel:
    """Build a langchain chat model for one provider identity.

    Nothing is cached here; the extraction client owns its instances.
    """
    provider = config.provider

    if provider == "ollama":
        from langchain_ollama import ChatOllama

        kwargs: dict = dict(
            base_url=config.endpoint or settings.OLLAMA_BASE_URL,
            model=config.model,
            temperature=config.temperature,
        )
        if json_mode:
            kwargs["format"] = "json"
        return ChatOllama(**kwargs)

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        if not config.api_key:
            raise ValueError("OPENAI_API_KEY is required when using the openai provider")
        kwargs = dict(
            model=config.model,
            temperature=config.temperature,
            api_key=config.api_key,
        )
        if json_mode:
            kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}
        return ChatOpenAI(**kwargs)

    if provider == "azure_openai":
        from langchain_openai import AzureChatOpenAI

        if not config.api_key:
            raise ValueError("AZURE_OPENAI_API_KEY is required when using the azure_openai provider")
        if not config.endpoint:
            raise ValueError("AZURE_OPENAI_ENDPOINT is required when using the azure_openai provider")
        kwargs = dict(
            azure_deployment=config.model,
            azure_endpoint=config.endpoint,
            api_key=config.api_key,
            api_version=settings.AZURE_OPENAI_API_VERSION,
            temperature=config.temperature,
        )
        if json_mode:
            kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}
        return AzureChatOpenAI(**kwargs)

    if provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        if not config.api_key:
            raise ValueError("ANTHROPIC_API_KEY is required when using the anthropic provider")
        return ChatAnthropic(
            model=config.model,
            temperature=config.temperature,
            api_key=config.api_key,
        )

    if provider == "azure_foundry":
        from langchain_anthropic import ChatAnthropic as _ChatAnthropic

        if not config.api_key:
            raise ValueError("AZURE_FOUNDRY_API_KEY is required when using the azure_foundry provider")
        if not config.endpoint:
            raise ValueError("AZURE_FOUNDRY_ENDPOINT is required when using the azure_foundry provider")
        return _ChatAnthropic(
            model=config.model,
            temperature=config.temperature,
            anthropic_api_key=config.api_key,
            anthropic_api_url=config.endpoint,
        )

    raise ValueError(f"Unknown provider: {provider!r}. Valid: {VALID_PROVIDERS}")

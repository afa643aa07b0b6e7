from typing import Literal, Optional

from pydantic import BaseModel

from src.config import Settings, settings as default_settings

ProviderName = Literal["ollama", "openai", "azure_openai", "anthropic", "azure_foundry"]
Role = Literal["primary", "secondary", "repair"]


class ProviderConfig(BaseModel):
    """One provider identity: which backend, which model, which credentials."""
    provider: ProviderName
    model: str
    temperature: float = 0.1
    api_key: Optional[str] = None
    endpoint: Optional[str] = None


def _default_model_for_provider(cfg: Settings, provider: str, role: str) -> str:
    """Return the env-configured default model for a given provider and role."""
    return getattr(cfg, f"{provider.upper()}_MODEL_{role.upper()}", "unknown")


def _provider_config(cfg: Settings, provider: str, role: str, temperature: float) -> ProviderConfig:
    api_key = getattr(cfg, f"{provider.upper()}_API_KEY", None)
    endpoint = getattr(cfg, f"{provider.upper()}_ENDPOINT", None)
    if provider == "ollama":
        endpoint = cfg.OLLAMA_BASE_URL
    return ProviderConfig(
        provider=provider,
        model=_default_model_for_provider(cfg, provider, role),
        temperature=temperature,
        api_key=api_key,
        endpoint=endpoint,
    )


class LLMConfig(BaseModel):
    """Provider selection for one extraction client.

    ``primary`` and ``secondary`` are the two providers ``generate`` falls
    back between; ``selected`` says which one is tried first. ``repair`` is
    the fast model used for the single JSON repair request.
    """
    primary: ProviderConfig
    secondary: Optional[ProviderConfig] = None
    repair: ProviderConfig
    selected: Literal["primary", "secondary"] = "primary"

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "LLMConfig":
        cfg = cfg or default_settings
        primary = _provider_config(cfg, cfg.LLM_PROVIDER_PRIMARY, "primary", 0.1)
        secondary = None
        if cfg.LLM_PROVIDER_SECONDARY:
            secondary = _provider_config(cfg, cfg.LLM_PROVIDER_SECONDARY, "secondary", 0.2)
        repair_provider = cfg.LLM_PROVIDER_REPAIR or cfg.LLM_PROVIDER_PRIMARY
        repair = _provider_config(cfg, repair_provider, "repair", 0.0)
        return cls(primary=primary, secondary=secondary, repair=repair)


class LLMRoleConfig(BaseModel):
    provider: str
    model: str
    api_key_set: bool
    endpoint: Optional[str] = None


class LLMSettingsResponse(BaseModel):
    primary: LLMRoleConfig
    secondary: Optional[LLMRoleConfig] = None
    repair: LLMRoleConfig
    selected: str


class LLMRoleUpdate(BaseModel):
    provider: Optional[ProviderName] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    endpoint: Optional[str] = None


class LLMSettingsUpdate(BaseModel):
    primary: Optional[LLMRoleUpdate] = None
    secondary: Optional[LLMRoleUpdate] = None
    repair: Optional[LLMRoleUpdate] = None
    selected: Optional[Literal["primary", "secondary"]] = None


class LLMTestRequest(BaseModel):
    prompt: str = "Reply with the single word OK."


class LLMTestResponse(BaseModel):
    provider: str
    text: str

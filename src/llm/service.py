import logging
from typing import Optional

from src.config import Settings, settings as default_settings
from src.llm.client import ExtractionClient
from src.llm.schemas import (
    LLMConfig,
    LLMRoleConfig,
    LLMRoleUpdate,
    LLMSettingsResponse,
    LLMSettingsUpdate,
    LLMTestResponse,
    ProviderConfig,
    _provider_config,
)

logger = logging.getLogger(__name__)

_ROLE_TEMPERATURES = {"primary": 0.1, "secondary": 0.2, "repair": 0.0}

TEST_SYSTEM_PROMPT = "You are a connectivity check. Answer briefly."


def _role_view(config: Optional[ProviderConfig]) -> Optional[LLMRoleConfig]:
    """Public view of a provider config. API keys are only reported as set or unset."""
    if config is None:
        return None
    return LLMRoleConfig(
        provider=config.provider,
        model=config.model,
        api_key_set=bool(config.api_key),
        endpoint=config.endpoint,
    )


class LLMSettingsService:
    """Reads and changes the provider configuration of the running extraction client."""

    def __init__(self, client: ExtractionClient, cfg: Optional[Settings] = None):
        self.client = client
        self.cfg = cfg or default_settings

    def get_effective_settings(self) -> LLMSettingsResponse:
        config = self.client.config
        return LLMSettingsResponse(
            primary=_role_view(config.primary),
            secondary=_role_view(config.secondary),
            repair=_role_view(config.repair),
            selected=config.selected,
        )

    def _apply_role(self, role: str, current: Optional[ProviderConfig], update: LLMRoleUpdate) -> ProviderConfig:
        update_data = update.model_dump(exclude_unset=True)
        provider = update_data.pop("provider", None)

        # Switching provider starts from that provider's env defaults
        if provider and (current is None or provider != current.provider):
            current = _provider_config(self.cfg, provider, role, _ROLE_TEMPERATURES[role])
        if current is None:
            raise ValueError(f"No provider configured for {role}; set one first")
        return current.model_copy(update=update_data)

    def update_settings(self, update: LLMSettingsUpdate) -> LLMSettingsResponse:
        config = self.client.config
        changes = {}
        for role in ("primary", "secondary", "repair"):
            role_update = getattr(update, role)
            if role_update is not None:
                changes[role] = self._apply_role(role, getattr(config, role), role_update)
        if update.selected is not None:
            changes["selected"] = update.selected

        new_config: LLMConfig = config.model_copy(update=changes)
        if new_config.selected == "secondary" and new_config.secondary is None:
            raise ValueError("Cannot select the secondary provider: none is configured")

        self.client.reconfigure(new_config)
        logger.info(
            "LLM settings updated: primary=%s secondary=%s repair=%s selected=%s",
            new_config.primary.provider,
            new_config.secondary.provider if new_config.secondary else None,
            new_config.repair.provider,
            new_config.selected,
        )
        return self.get_effective_settings()

    async def test_connection(self, prompt: str) -> LLMTestResponse:
        text = await self.client.generate_text(TEST_SYSTEM_PROMPT, prompt)
        return LLMTestResponse(provider=self.client.selected_provider, text=text)

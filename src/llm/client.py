"""Provider-agnostic extraction client with fallback and JSON self-healing.

Bounded call budget per logical request::

    selected provider ──fail──▶ other provider (once) ──fail──▶ ExtractionProviderError
          │ text
          ▼
    safe_parse_json + schema ──fail──▶ repair model (once) ──fail──▶ ExtractionUnrecoverable

At most three external calls, however many local string repairs are tried.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import TypeAdapter, ValidationError

from src.llm.factory import create_chat_model
from src.llm.json_repair import JSONRepairError, safe_parse_json
from src.llm.schemas import LLMConfig, ProviderConfig
from src.shared.exceptions import ExtractionProviderError, ExtractionUnrecoverable

logger = logging.getLogger(__name__)

T = TypeVar("T")

REPAIR_SYSTEM_PROMPT = "You are a rigid JSON fixer. Output only JSON."

REPAIR_USER_PROMPT = """The following JSON is malformed or truncated.
ERROR: {error}

RAW BROKEN JSON:
{raw}

TASK: Return ONLY valid, corrected JSON. Do not explain. Close any open arrays/objects."""

SCHEMA_INSTRUCTION = """

Respond ONLY with JSON that conforms to this JSON Schema. No markdown, no prose.
{schema}"""


def _content_to_text(content: Any) -> str:
    """Flatten a chat response's content (string or list of content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class ExtractionClient:
    """One client per session; holds its own provider configuration and models."""

    def __init__(
        self,
        config: LLMConfig,
        model_factory: Callable[..., Any] = create_chat_model,
    ):
        self.config = config
        self._model_factory = model_factory
        self._models: Dict[tuple, Any] = {}

    def reconfigure(self, config: LLMConfig) -> None:
        """Swap provider configuration and drop model instances built from the old one."""
        self.config = config
        self._models.clear()

    @property
    def selected_provider(self) -> str:
        return self._role_config(self.config.selected).provider

    def _role_config(self, role: str) -> Optional[ProviderConfig]:
        return getattr(self.config, role)

    def _model(self, role: str, json_mode: bool):
        key = (role, json_mode)
        if key not in self._models:
            self._models[key] = self._model_factory(self._role_config(role), json_mode=json_mode)
        return self._models[key]

    def _provider_order(self) -> List[str]:
        selected = self.config.selected
        other = "secondary" if selected == "primary" else "primary"
        order = [selected]
        if self._role_config(other) is not None:
            order.append(other)
        return order

    @staticmethod
    def _build_messages(system_prompt: str, user_prompt: str, attachments: Optional[Sequence[dict]]):
        if attachments:
            user_content: Any = [{"type": "text", "text": user_prompt}, *attachments]
        else:
            user_content = user_prompt
        return [SystemMessage(content=system_prompt), HumanMessage(content=user_content)]

    async def _invoke(self, role: str, messages: list, json_mode: bool) -> str:
        model = self._model(role, json_mode)
        response = await model.ainvoke(messages)
        return _content_to_text(response.content)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        json_mode: bool = False,
        attachments: Optional[Sequence[dict]] = None,
    ) -> str:
        """Call the selected provider, falling back to the other one exactly once."""
        messages = self._build_messages(system_prompt, user_prompt, attachments)
        errors: List[str] = []
        for role in self._provider_order():
            provider = self._role_config(role).provider
            try:
                return await self._invoke(role, messages, json_mode)
            except Exception as e:
                logger.error("%s generation failed via %s: %s", role, provider, e)
                errors.append(f"{role}/{provider}: {e}")
        raise ExtractionProviderError(errors)

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        attachments: Optional[Sequence[dict]] = None,
    ) -> str:
        return await self.generate(system_prompt, user_prompt, attachments=attachments)

    async def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        schema: Optional[Any] = None,
        attachments: Optional[Sequence[dict]] = None,
    ) -> Any:
        """Generate structured output and make it parse, or fail terminally.

        When ``schema`` (a pydantic model or any type ``TypeAdapter`` accepts)
        is given the parsed payload is validated against it and the validated
        value is returned; untyped data never leaves this method.
        """
        adapter = TypeAdapter(schema) if schema is not None else None
        if adapter is not None:
            system_prompt += SCHEMA_INSTRUCTION.format(schema=json.dumps(adapter.json_schema()))

        raw_text = await self.generate(system_prompt, user_prompt, json_mode=True, attachments=attachments)
        try:
            return self._accept(raw_text, adapter)
        except (JSONRepairError, ValidationError) as e:
            parse_error = str(e)
            logger.warning("Structured output rejected (%s); requesting repair", parse_error)

        repair_prompt = REPAIR_USER_PROMPT.format(error=parse_error, raw=raw_text)
        messages = self._build_messages(REPAIR_SYSTEM_PROMPT, repair_prompt, None)
        try:
            repaired_text = await self._invoke("repair", messages, True)
        except Exception as e:
            logger.error("Repair request failed: %s", e)
            raise ExtractionUnrecoverable(
                f"Repair request failed: {e}", raw_text=raw_text, parse_error=parse_error
            ) from e

        try:
            return self._accept(repaired_text, adapter)
        except (JSONRepairError, ValidationError) as e:
            logger.error("Self-healing failed: %s", e)
            raise ExtractionUnrecoverable(
                "Structured output could not be recovered",
                raw_text=repaired_text,
                parse_error=str(e),
            ) from e

    async def generate_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: Type[T],
        *,
        attachments: Optional[Sequence[dict]] = None,
    ) -> T:
        return await self.generate_json(
            system_prompt, user_prompt, schema=schema, attachments=attachments
        )

    @staticmethod
    def _accept(text: str, adapter: Optional[TypeAdapter]) -> Any:
        data = safe_parse_json(text)
        if adapter is None:
            return data
        return adapter.validate_python(data)

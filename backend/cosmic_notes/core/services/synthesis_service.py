from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import Field, create_model

from cosmic_notes.config import settings
from cosmic_notes.core.errors import ProviderError
from cosmic_notes.core.models.base import AppBaseModel
from cosmic_notes.core.prompts.strategies import ModelTier, OutputKind
from cosmic_notes.utils.logging import cluster_context, get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from openai import AsyncOpenAI

    from cosmic_notes.core.prompts.strategies import SynthesisStrategy

logger = get_logger(__name__)


class SynthesisProvider(Protocol):
    async def synthesize(self, strategy: SynthesisStrategy, prompt: str) -> str:
        """Return structured text for a rendered summary prompt."""
        ...

    async def generate_items(
        self,
        strategy: SynthesisStrategy,
        prompt: str,
        existing_items: Sequence[str],
    ) -> list[str]:
        """Return only item texts not already present in `existing_items`."""
        ...


@lru_cache(maxsize=32)
def _output_format(key: str, description: str, kind: OutputKind) -> type[AppBaseModel]:
    """Build the structured-output model for a strategy's output shape hint."""
    field_type: Any = list[str] if kind is OutputKind.ITEMS else str
    return create_model(
        f"{key.title().replace('-', '')}Output",
        __base__=AppBaseModel,
        **{key: (field_type, Field(description=description))},
    )


class OpenAISynthesisProvider:
    """Cluster synthesis through the OpenAI Responses API with parsed output."""

    def __init__(self, client: AsyncOpenAI) -> None:
        self._client = client

    @staticmethod
    def _model_for(tier: ModelTier) -> str:
        if tier is ModelTier.ADVANCED:
            return settings.summary_model_advanced
        if tier is ModelTier.LIGHT:
            return settings.items_model
        return settings.summary_model

    async def _parse(self, strategy: SynthesisStrategy, prompt: str) -> Any:
        text_format = _output_format(strategy.output_key, strategy.output_description, strategy.output)
        model = self._model_for(strategy.tier)
        context = cluster_context(None, strategy.category.value, model=model)

        logger.info("Requesting %s synthesis", strategy.category.value, extra=context)
        try:
            response = await self._client.responses.parse(
                model=model,
                input=[
                    {"role": "system", "content": strategy.system},
                    {"role": "user", "content": prompt},
                ],
                reasoning={"effort": settings.summary_model_reasoning},
                text_format=text_format,
            )
        except Exception as err:
            logger.error("Synthesis request failed for %s: %s", strategy.category.value, err, extra=context)
            raise ProviderError(
                f"Synthesis request failed: {err}",
                details={"category": strategy.category.value, "model": model},
            ) from err

        parsed = getattr(response, "output_parsed", None)
        if parsed is None:
            logger.warning("Synthesis returned no parsed output for %s", strategy.category.value, extra=context)
            raise ProviderError(
                "Synthesis response was refused or malformed",
                details={"category": strategy.category.value, "model": model},
            )
        return getattr(parsed, strategy.output_key)

    async def synthesize(self, strategy: SynthesisStrategy, prompt: str) -> str:
        value = await self._parse(strategy, prompt)
        return str(value).strip()

    async def generate_items(
        self,
        strategy: SynthesisStrategy,
        prompt: str,
        existing_items: Sequence[str],
    ) -> list[str]:
        values = await self._parse(strategy, prompt)
        existing = set(existing_items)
        items: list[str] = []
        for value in values or []:
            item = str(value).strip()
            if item and item not in existing and item not in items:
                items.append(item)
        return items

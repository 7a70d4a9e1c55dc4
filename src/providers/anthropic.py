"""Anthropic Claude provider using anthropic SDK with native async."""

import logging
import os
import time

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from src.models import DebateContext
from src.prompts import build_system_prompt, build_user_prompt
from src.providers.base import ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)


class AnthropicProvider:
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env or "", "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        # Retries belong to generate_resilient alone.
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key, max_retries=0)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, context: DebateContext) -> str:
        start = time.monotonic()
        try:
            response = await self._client.messages.create(
                model=self._config.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system=build_system_prompt(context),
                messages=[{"role": "user", "content": build_user_prompt(prompt, context)}],
            )
        except anthropic_sdk.APITimeoutError as exc:
            raise ProviderTimeout(self._config.name, f"Request timed out: {exc}") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.name, "No text blocks in response")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info(
            "Anthropic %s/%s: %.2fs, %s tokens",
            context.phase.value,
            context.side.value,
            time.monotonic() - start,
            token_count,
        )
        return "\n".join(text_blocks)

    async def check_available(self) -> bool:
        try:
            await self._client.models.retrieve(self._config.model)
        except Exception as exc:
            logger.debug("Anthropic availability check failed: %s", exc)
            return False
        return True

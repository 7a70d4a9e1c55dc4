"""OpenAI provider using openai SDK with native async."""

import logging
import os
import time

from openai import APITimeoutError, AsyncOpenAI

from config.config_loader import ModelConfig
from src.models import DebateContext
from src.prompts import build_system_prompt, build_user_prompt
from src.providers.base import ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """OpenAI provider via openai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env or "", "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        # Retries belong to generate_resilient alone.
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url, max_retries=0)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, context: DebateContext) -> str:
        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self._config.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(context)},
                    {"role": "user", "content": build_user_prompt(prompt, context)},
                ],
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            )
        except APITimeoutError as exc:
            raise ProviderTimeout(self._config.name, f"Request timed out: {exc}") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info(
            "OpenAI %s/%s: %.2fs, %s tokens",
            context.phase.value,
            context.side.value,
            time.monotonic() - start,
            token_count,
        )
        return choice.message.content

    async def check_available(self) -> bool:
        try:
            await self._client.models.retrieve(self._config.model)
        except Exception as exc:
            logger.debug("OpenAI availability check failed: %s", exc)
            return False
        return True

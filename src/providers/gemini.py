"""Gemini provider using google-genai SDK with native async."""

import logging
import os
import time

import httpx
from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from src.models import DebateContext
from src.prompts import build_system_prompt, build_user_prompt
from src.providers.base import ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)


class GeminiProvider:
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env or "", "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, context: DebateContext) -> str:
        start = time.monotonic()
        try:
            response = await self._client.aio.models.generate_content(
                model=self._config.model,
                contents=build_user_prompt(prompt, context),
                config=genai_types.GenerateContentConfig(
                    system_instruction=build_system_prompt(context),
                    max_output_tokens=self._config.max_tokens,
                    temperature=self._config.temperature,
                ),
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeout(self._config.name, f"Request timed out: {exc}") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info(
            "Gemini %s/%s: %.2fs, %s tokens",
            context.phase.value,
            context.side.value,
            time.monotonic() - start,
            token_count,
        )
        return response.text

    async def check_available(self) -> bool:
        try:
            await self._client.aio.models.get(model=self._config.model)
        except Exception as exc:
            logger.debug("Gemini availability check failed: %s", exc)
            return False
        return True

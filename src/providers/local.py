"""Locally hosted models (Ollama, LM Studio) via their OpenAI-compatible API."""

import logging
import os
import time

from openai import APITimeoutError, AsyncOpenAI

from config.config_loader import ModelConfig
from src.models import DebateContext
from src.prompts import build_system_prompt, build_user_prompt
from src.providers.base import ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)

# Local servers ignore the key, but the SDK insists on one.
_PLACEHOLDER_KEY = "local"


class LocalModelProvider:
    """Local model server speaking the OpenAI chat-completions protocol."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        if not config.base_url:
            raise ProviderError(config.name, "base_url is required for a local model server")
        api_key = os.environ.get(config.api_key_env or "", "").strip() or _PLACEHOLDER_KEY
        self._client = AsyncOpenAI(
            api_key=api_key, base_url=config.base_url.rstrip("/"), max_retries=0
        )

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
            raise ProviderError(self._config.name, f"Local model API error: {exc}") from exc

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "No response generated from local model")

        logger.info(
            "Local %s %s/%s: %.2fs",
            self._config.model,
            context.phase.value,
            context.side.value,
            time.monotonic() - start,
        )
        return choice.message.content.strip()

    async def check_available(self) -> bool:
        try:
            await self._client.models.list()
        except Exception as exc:
            logger.debug("Local model server at %s unreachable: %s", self._config.base_url, exc)
            return False
        return True

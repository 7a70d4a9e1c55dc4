"""Deterministic offline debater: canned responses, optional failure and delay."""

import asyncio
from dataclasses import dataclass

from config.config_loader import ModelConfig
from src.models import DebateContext
from src.providers.base import ProviderError


@dataclass
class MockCall:
    prompt: str
    context: DebateContext


class MockProvider:
    """Test double satisfying AIProvider.

    Response lookup order: exact prompt, phase value, side value, default,
    then a generated line naming the agent, side and phase.
    Every call is appended to ``calls`` before any delay or failure.
    """

    def __init__(
        self,
        provider_name: str = "mock",
        responses: dict[str, str] | None = None,
        default_response: str | None = None,
        *,
        available: bool = True,
        fail_with: Exception | None = None,
        delay_sec: float = 0.0,
    ) -> None:
        self._name = provider_name
        self.responses = dict(responses or {})
        self.default_response = default_response
        self.available = available
        self.fail_with = fail_with
        self.delay_sec = delay_sec
        self.calls: list[MockCall] = []

    @classmethod
    def from_config(cls, config: ModelConfig) -> "MockProvider":
        return cls(config.name)

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-debater"

    async def generate(self, prompt: str, context: DebateContext) -> str:
        self.calls.append(MockCall(prompt, context))
        if self.delay_sec > 0:
            await asyncio.sleep(self.delay_sec)
        if self.fail_with is not None:
            raise self.fail_with
        for key in (prompt, context.phase.value, context.side.value):
            if key in self.responses:
                return self.responses[key]
        if self.default_response is not None:
            return self.default_response
        return f"{self._name} ({context.side.value}) {context.phase.value} statement on: {context.topic}"

    async def check_available(self) -> bool:
        return self.available

    @property
    def call_count(self) -> int:
        return len(self.calls)


def failing(provider_name: str, message: str = "Mock provider failure") -> MockProvider:
    """A mock that fails every call with a ProviderError."""
    return MockProvider(provider_name, fail_with=ProviderError(provider_name, message))

"""Generation capability shared by every debate backend."""

from typing import Protocol, runtime_checkable

from src.errors import GenerationTimeout
from src.models import DebateContext


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class ProviderTimeout(ProviderError, GenerationTimeout):
    """Raised when the backend itself reports a timeout."""


@runtime_checkable
class AIProvider(Protocol):
    """Anything that can speak for one side of a debate."""

    def name(self) -> str:
        """Return the short agent name (e.g. 'claude', 'ollama')."""
        ...

    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    async def generate(self, prompt: str, context: DebateContext) -> str:
        """Generate text for the given prompt.

        Args:
            prompt: The round-specific instruction text.
            context: Topic, side, phase and the history visible to this side.

        Returns:
            The generated text.

        Raises:
            ProviderTimeout: If the backend reports a timeout.
            ProviderError: On any other API failure or an empty response.
        """
        ...

    async def check_available(self) -> bool:
        """Cheap reachability check, used at setup time only."""
        ...

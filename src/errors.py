"""Exception taxonomy for the debate core."""

from typing import Any

from src.models import ErrorEntry, Phase


class DebateError(Exception):
    """Base for all debate errors."""


class InvalidTopic(DebateError):
    """Topic is empty or whitespace-only."""


class InvalidTransition(DebateError):
    """Phase change outside the single allowed successor."""

    def __init__(self, current: Phase, target: Phase) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid phase transition: cannot move from {current.value} to {target.value}"
        )


class GenerationTimeout(DebateError):
    """A generation call exceeded its deadline."""


class GenerationFailure(DebateError):
    """Unrecoverable generation error for one side in one phase.

    ``entry`` is the structured error-log record for this failure. ``session``
    is filled in once the session has been moved to ERROR.
    """

    def __init__(self, entry: ErrorEntry) -> None:
        self.entry = entry
        self.session: Any = None
        super().__init__(entry.message)


class PersistenceFailure(DebateError):
    """Saving a transcript failed."""

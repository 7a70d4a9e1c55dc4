"""Immutable dataclasses for the debate session. No I/O, no deps."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Phase(str, Enum):
    INITIALIZED = "initialized"
    PREPARATION = "preparation"
    OPENING = "opening"
    REBUTTAL = "rebuttal"
    CROSS_EXAM = "cross_exam"
    CLOSING = "closing"
    COMPLETED = "completed"
    ERROR = "error"


class Side(str, Enum):
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"

    @property
    def opponent(self) -> "Side":
        return Side.NEGATIVE if self is Side.AFFIRMATIVE else Side.AFFIRMATIVE


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def count_words(text: str) -> int:
    """Number of whitespace-delimited, non-empty tokens."""
    return len(text.split())


@dataclass(frozen=True)
class DebateConfig:
    time_limit_sec: float = 120.0     # per generation call
    word_limit: int | None = None     # None disables truncation
    strict_mode: bool = False
    show_preparation: bool = True
    cross_exam_questions: int = 1


@dataclass(frozen=True)
class Statement:
    model: str              # agent name
    side: Side
    content: str
    generated_at: datetime = field(default_factory=utc_now)
    word_count: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "word_count", count_words(self.content))


@dataclass(frozen=True)
class DebateRound:
    phase: Phase
    affirmative: Statement | None = None
    negative: Statement | None = None
    timestamp: datetime = field(default_factory=utc_now)

    def statement_for(self, side: Side) -> Statement | None:
        return self.affirmative if side is Side.AFFIRMATIVE else self.negative


@dataclass(frozen=True)
class DebateContext:
    topic: str
    side: Side
    phase: Phase
    previous_statements: tuple[Statement, ...] = ()
    preparation_material: str | None = None


@dataclass(frozen=True)
class ErrorEntry:
    message: str
    model: str | None = None
    side: Side | None = None
    phase: Phase | None = None
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Session:
    id: str
    topic: str
    config: DebateConfig
    affirmative: Any          # AIProvider handle
    negative: Any             # AIProvider handle
    phase: Phase = Phase.INITIALIZED
    rounds: tuple[DebateRound, ...] = ()
    created_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    errors: tuple[ErrorEntry, ...] = ()

    def agent_for(self, side: Side) -> Any:
        return self.affirmative if side is Side.AFFIRMATIVE else self.negative

    def round_for(self, phase: Phase) -> DebateRound | None:
        return next((r for r in self.rounds if r.phase is phase), None)

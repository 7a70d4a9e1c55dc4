"""Session state machine: creation, phase transitions, completion."""

import dataclasses
import logging
import uuid

from src.errors import InvalidTopic, InvalidTransition
from src.models import (
    DebateConfig,
    DebateRound,
    ErrorEntry,
    Phase,
    Session,
    utc_now,
)
from src.providers.base import AIProvider

logger = logging.getLogger(__name__)

PHASE_SEQUENCE: tuple[Phase, ...] = (
    Phase.INITIALIZED,
    Phase.PREPARATION,
    Phase.OPENING,
    Phase.REBUTTAL,
    Phase.CROSS_EXAM,
    Phase.CLOSING,
    Phase.COMPLETED,
)

_TERMINAL = frozenset({Phase.COMPLETED, Phase.ERROR})

_SUCCESSOR: dict[Phase, Phase] = {
    current: nxt for current, nxt in zip(PHASE_SEQUENCE, PHASE_SEQUENCE[1:])
}


def is_terminal(phase: Phase) -> bool:
    return phase in _TERMINAL


def validate_transition(current: Phase, target: Phase) -> None:
    """Raise InvalidTransition unless ``target`` may follow ``current``.

    ERROR is reachable from every non-terminal phase; otherwise the only
    legal target is the next phase in PHASE_SEQUENCE.
    """
    if is_terminal(current):
        raise InvalidTransition(current, target)
    if target is Phase.ERROR:
        return
    if _SUCCESSOR.get(current) is not target:
        raise InvalidTransition(current, target)


def initialize(
    topic: str,
    config: DebateConfig,
    affirmative: AIProvider,
    negative: AIProvider,
) -> Session:
    """Create a new session in INITIALIZED.

    The topic is stored exactly as given; it only has to contain at least one
    non-whitespace character.

    Raises:
        InvalidTopic: If the trimmed topic is empty.
    """
    if not topic or not topic.strip():
        raise InvalidTopic("Topic must contain at least one non-whitespace character")

    session = Session(
        id=uuid.uuid4().hex,
        topic=topic,
        config=config,
        affirmative=affirmative,
        negative=negative,
    )
    logger.debug("Session %s initialized: %r", session.id, topic)
    return session


def record_round(session: Session, debate_round: DebateRound) -> Session:
    """Append a round and advance the session into the round's phase."""
    validate_transition(session.phase, debate_round.phase)
    return dataclasses.replace(
        session,
        phase=debate_round.phase,
        rounds=session.rounds + (debate_round,),
    )


def with_error(session: Session, entry: ErrorEntry) -> Session:
    return dataclasses.replace(session, errors=session.errors + (entry,))


def fail(session: Session, entry: ErrorEntry | None = None) -> Session:
    """Move a non-terminal session to ERROR, keeping completed rounds.

    ``entry`` is appended to the error log first when given.
    """
    validate_transition(session.phase, Phase.ERROR)
    if entry is not None:
        session = with_error(session, entry)
    return dataclasses.replace(session, phase=Phase.ERROR)


def complete(session: Session) -> Session:
    validate_transition(session.phase, Phase.COMPLETED)
    return dataclasses.replace(session, phase=Phase.COMPLETED, completed_at=utc_now())

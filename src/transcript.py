"""JSON transcript persistence: full saves after completion, partial saves on failure."""

import json
import logging
from pathlib import Path
from typing import Any

from src.citations import Bibliography, build_bibliography
from src.errors import PersistenceFailure
from src.models import DebateRound, ErrorEntry, Phase, Session, Statement

logger = logging.getLogger(__name__)


def _statement_dict(stmt: Statement | None) -> dict[str, Any] | None:
    if stmt is None:
        return None
    return {
        "model": stmt.model,
        "side": stmt.side.value,
        "content": stmt.content,
        "word_count": stmt.word_count,
        "generated_at": stmt.generated_at.isoformat(),
    }


def _round_dict(rnd: DebateRound) -> dict[str, Any]:
    return {
        "phase": rnd.phase.value,
        "affirmative": _statement_dict(rnd.affirmative),
        "negative": _statement_dict(rnd.negative),
        "timestamp": rnd.timestamp.isoformat(),
    }


def _error_dict(entry: ErrorEntry) -> dict[str, Any]:
    return {
        "message": entry.message,
        "model": entry.model,
        "side": entry.side.value if entry.side else None,
        "phase": entry.phase.value if entry.phase else None,
        "timestamp": entry.timestamp.isoformat(),
    }


def _bibliography_dict(bib: Bibliography) -> dict[str, list[dict[str, Any]]]:
    return {
        "shared": [c.to_dict() for c in bib.shared],
        "affirmative": [c.to_dict() for c in bib.affirmative],
        "negative": [c.to_dict() for c in bib.negative],
    }


def session_to_dict(session: Session) -> dict[str, Any]:
    """Serializable view of a session; agents are reduced to their names.

    ``formatted_rounds`` is the reader-facing view and drops the preparation
    round when ``show_preparation`` is off; ``rounds`` always keeps it. Citations
    follow the reader-facing view.
    """
    cfg = session.config
    visible = [
        r for r in session.rounds
        if cfg.show_preparation or r.phase is not Phase.PREPARATION
    ]
    duration = (
        (session.completed_at - session.created_at).total_seconds()
        if session.completed_at else None
    )
    return {
        "id": session.id,
        "topic": session.topic,
        "phase": session.phase.value,
        "config": {
            "time_limit_sec": cfg.time_limit_sec,
            "word_limit": cfg.word_limit,
            "strict_mode": cfg.strict_mode,
            "show_preparation": cfg.show_preparation,
            "cross_exam_questions": cfg.cross_exam_questions,
        },
        "models": {
            "affirmative": session.affirmative.name(),
            "negative": session.negative.name(),
        },
        "created_at": session.created_at.isoformat(),
        "completed_at": session.completed_at.isoformat() if session.completed_at else None,
        "duration_sec": duration,
        "rounds": [_round_dict(r) for r in session.rounds],
        "formatted_rounds": [_round_dict(r) for r in visible],
        "citations": _bibliography_dict(build_bibliography(session)),
        "errors": [_error_dict(e) for e in session.errors],
    }


class TranscriptStore:
    """Writes transcripts as pretty-printed JSON under ``transcripts_dir``."""

    def __init__(self, transcripts_dir: Path) -> None:
        self.transcripts_dir = Path(transcripts_dir)

    def _write(self, filename: str, payload: dict[str, Any]) -> str:
        path = self.transcripts_dir / filename
        try:
            self.transcripts_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise PersistenceFailure(f"Could not write transcript {path}: {exc}") from exc
        logger.info("Transcript saved to: %s", path)
        return str(path)

    def save(self, session: Session) -> str:
        """Save a completed session. Returns the file path.

        Raises:
            PersistenceFailure: If the session is not COMPLETED or the write fails.
        """
        if session.phase is not Phase.COMPLETED:
            raise PersistenceFailure(
                f"Session {session.id} is {session.phase.value}; only completed debates get a full save"
            )
        return self._write(f"{session.id}.json", session_to_dict(session))

    def save_partial(self, session: Session) -> str:
        """Save whatever the session holds, marked as partial."""
        payload = {**session_to_dict(session), "partial": True}
        return self._write(f"partial-{session.id}.json", payload)

    def load(self, name: str) -> dict[str, Any]:
        """Load a saved transcript by id or file stem (e.g. ``partial-<id>``)."""
        path = self.transcripts_dir / f"{name}.json"
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(f"Could not read transcript {path}: {exc}") from exc

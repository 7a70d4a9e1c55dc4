"""Tests for per-phase visibility in src/context.py."""

from dataclasses import replace

import pytest

from src.context import build_context
from src.models import DebateRound, Phase, Side, Statement
from src.session import record_round


def _stmt(side: Side, phase: Phase) -> Statement:
    model = "agent_a" if side is Side.AFFIRMATIVE else "agent_b"
    return Statement(model, side, f"{side.value} {phase.value}")


def _advance(session, *phases: Phase):
    for phase in phases:
        session = record_round(
            session,
            DebateRound(
                phase=phase,
                affirmative=_stmt(Side.AFFIRMATIVE, phase),
                negative=_stmt(Side.NEGATIVE, phase),
            ),
        )
    return session


def _contents(ctx) -> list[str]:
    return [s.content for s in ctx.previous_statements]


@pytest.mark.parametrize("side", list(Side))
def test_preparation_sees_nothing(new_session, side):
    ctx = build_context(new_session, side, Phase.PREPARATION)
    assert ctx.previous_statements == ()
    assert ctx.preparation_material is None
    assert ctx.topic == new_session.topic
    assert ctx.side is side
    assert ctx.phase is Phase.PREPARATION


@pytest.mark.parametrize("side", list(Side))
def test_opening_sees_only_own_preparation(new_session, side):
    session = _advance(new_session, Phase.PREPARATION)
    ctx = build_context(session, side, Phase.OPENING)
    assert ctx.previous_statements == ()
    assert ctx.preparation_material == f"{side.value} preparation"


def test_rebuttal_sees_opponent_opening_only(new_session):
    session = _advance(new_session, Phase.PREPARATION, Phase.OPENING)
    aff = build_context(session, Side.AFFIRMATIVE, Phase.REBUTTAL)
    neg = build_context(session, Side.NEGATIVE, Phase.REBUTTAL)
    assert _contents(aff) == ["negative opening"]
    assert _contents(neg) == ["affirmative opening"]


def test_cross_exam_sees_opponent_opening_and_rebuttal(new_session):
    session = _advance(new_session, Phase.PREPARATION, Phase.OPENING, Phase.REBUTTAL)
    aff = build_context(session, Side.AFFIRMATIVE, Phase.CROSS_EXAM)
    neg = build_context(session, Side.NEGATIVE, Phase.CROSS_EXAM)
    assert _contents(aff) == ["negative opening", "negative rebuttal"]
    assert _contents(neg) == ["affirmative opening", "affirmative rebuttal"]


@pytest.mark.parametrize("side", list(Side))
def test_closing_sees_full_history_in_order(new_session, side):
    session = _advance(
        new_session, Phase.PREPARATION, Phase.OPENING, Phase.REBUTTAL, Phase.CROSS_EXAM
    )
    ctx = build_context(session, side, Phase.CLOSING)
    assert _contents(ctx) == [
        "affirmative opening",
        "negative opening",
        "affirmative rebuttal",
        "negative rebuttal",
        "affirmative cross_exam",
        "negative cross_exam",
    ]


def test_opponent_preparation_never_visible(new_session):
    session = _advance(
        new_session, Phase.PREPARATION, Phase.OPENING, Phase.REBUTTAL, Phase.CROSS_EXAM
    )
    for phase in (Phase.OPENING, Phase.REBUTTAL, Phase.CROSS_EXAM, Phase.CLOSING):
        ctx = build_context(session, Side.AFFIRMATIVE, phase)
        assert "negative preparation" not in _contents(ctx)
        assert ctx.preparation_material == "affirmative preparation"


def test_hidden_preparation_still_feeds_context(new_session):
    session = replace(new_session, config=replace(new_session.config, show_preparation=False))
    session = _advance(session, Phase.PREPARATION)
    ctx = build_context(session, Side.NEGATIVE, Phase.OPENING)
    assert ctx.preparation_material == "negative preparation"

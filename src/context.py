"""Context assembly: what each side gets to see for a given phase."""

from src.models import DebateContext, Phase, Session, Side, Statement

# Rounds whose statements feed the closing context, in phase order.
_CLOSING_HISTORY = (Phase.OPENING, Phase.REBUTTAL, Phase.CROSS_EXAM)


def _opponent_statements(session: Session, side: Side, phases: tuple[Phase, ...]) -> list[Statement]:
    statements: list[Statement] = []
    for phase in phases:
        rnd = session.round_for(phase)
        if rnd is None:
            continue
        stmt = rnd.statement_for(side.opponent)
        if stmt is not None:
            statements.append(stmt)
    return statements


def _all_statements(session: Session, phases: tuple[Phase, ...]) -> list[Statement]:
    statements: list[Statement] = []
    for phase in phases:
        rnd = session.round_for(phase)
        if rnd is None:
            continue
        # Affirmative speaks first in every round.
        for stmt in (rnd.affirmative, rnd.negative):
            if stmt is not None:
                statements.append(stmt)
    return statements


def build_context(session: Session, side: Side, phase: Phase) -> DebateContext:
    """Build the context for one generation call.

    Each phase sees only what a human debater would have heard by then:

    - preparation, opening: nothing from the opponent
    - rebuttal: the opponent's opening
    - cross-examination: the opponent's opening and rebuttal
    - closing: every opening, rebuttal and cross-examination statement

    ``preparation_material`` is always this side's own preparation notes, if
    the preparation round exists.
    """
    preparation_material: str | None = None
    prep_round = session.round_for(Phase.PREPARATION)
    if prep_round is not None:
        own = prep_round.statement_for(side)
        if own is not None:
            preparation_material = own.content

    if phase is Phase.REBUTTAL:
        previous = _opponent_statements(session, side, (Phase.OPENING,))
    elif phase is Phase.CROSS_EXAM:
        previous = _opponent_statements(session, side, (Phase.OPENING, Phase.REBUTTAL))
    elif phase is Phase.CLOSING:
        previous = _all_statements(session, _CLOSING_HISTORY)
    else:
        previous = []

    return DebateContext(
        topic=session.topic,
        side=side,
        phase=phase,
        previous_statements=tuple(previous),
        preparation_material=preparation_material,
    )

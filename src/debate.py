"""Debate orchestration: one coroutine per phase, plus a full-run driver."""

import asyncio
import logging
from collections.abc import Callable

from config.config_loader import PromptsConfig
from src import prompts as templates
from src.context import build_context
from src.errors import GenerationFailure
from src.models import DebateContext, DebateRound, Phase, Session, Side, Statement
from src.resilience import PartialSaver, generate_resilient, handle_critical_error
from src.session import complete, record_round, validate_transition

logger = logging.getLogger(__name__)


def enforce_word_limit(text: str, word_limit: int | None) -> str:
    """Truncate ``text`` to ``word_limit`` whitespace-delimited words.

    Text within the limit (or with no limit set) is returned unchanged.
    """
    if not word_limit or word_limit <= 0:
        return text
    words = text.split()
    if len(words) <= word_limit:
        return text
    logger.warning(
        "Response exceeded word limit of %d, truncated from %d to %d words",
        word_limit, len(words), word_limit,
    )
    return " ".join(words[:word_limit])


async def _generate(session: Session, side: Side, prompt: str, context: DebateContext) -> str:
    text = await generate_resilient(
        session.agent_for(side), prompt, context, session.config.time_limit_sec
    )
    return enforce_word_limit(text, session.config.word_limit)


def _statement(session: Session, side: Side, content: str) -> Statement:
    return Statement(model=session.agent_for(side).name(), side=side, content=content)


def _finish(session: Session, phase: Phase, affirmative: Statement, negative: Statement) -> Session:
    updated = record_round(
        session,
        DebateRound(phase=phase, affirmative=affirmative, negative=negative),
    )
    logger.info("Round %s complete (%s vs %s)", phase.value, affirmative.model, negative.model)
    return updated


async def execute_preparation(
    session: Session,
    prompts: PromptsConfig,
    store: PartialSaver | None = None,
) -> Session:
    """Both sides research the topic concurrently."""
    validate_transition(session.phase, Phase.PREPARATION)
    strict = session.config.strict_mode
    aff_ctx = build_context(session, Side.AFFIRMATIVE, Phase.PREPARATION)
    neg_ctx = build_context(session, Side.NEGATIVE, Phase.PREPARATION)

    try:
        aff_text, neg_text = await asyncio.gather(
            _generate(session, Side.AFFIRMATIVE, templates.preparation(prompts, aff_ctx, strict), aff_ctx),
            _generate(session, Side.NEGATIVE, templates.preparation(prompts, neg_ctx, strict), neg_ctx),
        )
    except GenerationFailure as exc:
        handle_critical_error(session, exc, Phase.PREPARATION, store)
        raise

    return _finish(
        session,
        Phase.PREPARATION,
        _statement(session, Side.AFFIRMATIVE, aff_text),
        _statement(session, Side.NEGATIVE, neg_text),
    )


async def execute_opening(
    session: Session,
    prompts: PromptsConfig,
    store: PartialSaver | None = None,
) -> Session:
    """Affirmative opens; the negative is only prompted once that has resolved."""
    validate_transition(session.phase, Phase.OPENING)
    strict = session.config.strict_mode
    aff_ctx = build_context(session, Side.AFFIRMATIVE, Phase.OPENING)
    neg_ctx = build_context(session, Side.NEGATIVE, Phase.OPENING)

    try:
        aff_text = await _generate(session, Side.AFFIRMATIVE, templates.opening(prompts, aff_ctx, strict), aff_ctx)
        affirmative = _statement(session, Side.AFFIRMATIVE, aff_text)
        neg_text = await _generate(session, Side.NEGATIVE, templates.opening(prompts, neg_ctx, strict), neg_ctx)
        negative = _statement(session, Side.NEGATIVE, neg_text)
    except GenerationFailure as exc:
        handle_critical_error(session, exc, Phase.OPENING, store)
        raise

    return _finish(session, Phase.OPENING, affirmative, negative)


async def execute_rebuttal(
    session: Session,
    prompts: PromptsConfig,
    store: PartialSaver | None = None,
) -> Session:
    """Both sides rebut the opponent's opening concurrently."""
    validate_transition(session.phase, Phase.REBUTTAL)
    strict = session.config.strict_mode
    aff_ctx = build_context(session, Side.AFFIRMATIVE, Phase.REBUTTAL)
    neg_ctx = build_context(session, Side.NEGATIVE, Phase.REBUTTAL)

    def opponent_opening(ctx: DebateContext) -> str:
        return ctx.previous_statements[0].content if ctx.previous_statements else ""

    aff_prompt = templates.rebuttal(prompts, aff_ctx, opponent_opening(aff_ctx), strict)
    neg_prompt = templates.rebuttal(prompts, neg_ctx, opponent_opening(neg_ctx), strict)

    try:
        aff_text, neg_text = await asyncio.gather(
            _generate(session, Side.AFFIRMATIVE, aff_prompt, aff_ctx),
            _generate(session, Side.NEGATIVE, neg_prompt, neg_ctx),
        )
    except GenerationFailure as exc:
        handle_critical_error(session, exc, Phase.REBUTTAL, store)
        raise

    return _finish(
        session,
        Phase.REBUTTAL,
        _statement(session, Side.AFFIRMATIVE, aff_text),
        _statement(session, Side.NEGATIVE, neg_text),
    )


async def execute_cross_examination(
    session: Session,
    prompts: PromptsConfig,
    store: PartialSaver | None = None,
) -> Session:
    """Four strictly sequential steps, each built on the text before it.

    affirmative asks -> negative answers -> negative asks -> affirmative answers
    """
    validate_transition(session.phase, Phase.CROSS_EXAM)
    strict = session.config.strict_mode
    count = session.config.cross_exam_questions
    aff_ctx = build_context(session, Side.AFFIRMATIVE, Phase.CROSS_EXAM)
    neg_ctx = build_context(session, Side.NEGATIVE, Phase.CROSS_EXAM)

    try:
        aff_question = await _generate(
            session, Side.AFFIRMATIVE,
            templates.cross_exam_question(prompts, aff_ctx, count, strict=strict), aff_ctx,
        )
        neg_answer = await _generate(
            session, Side.NEGATIVE,
            templates.cross_exam_answer(prompts, neg_ctx, aff_question, strict), neg_ctx,
        )
        exchange = f"Opponent's question:\n{aff_question}\n\nYour answer:\n{neg_answer}"
        neg_question = await _generate(
            session, Side.NEGATIVE,
            templates.cross_exam_question(prompts, neg_ctx, count, exchange=exchange, strict=strict), neg_ctx,
        )
        aff_answer = await _generate(
            session, Side.AFFIRMATIVE,
            templates.cross_exam_answer(prompts, aff_ctx, neg_question, strict), aff_ctx,
        )
    except GenerationFailure as exc:
        handle_critical_error(session, exc, Phase.CROSS_EXAM, store)
        raise

    # Each side's content keeps the order in which it was produced.
    affirmative = _statement(
        session, Side.AFFIRMATIVE, f"Question: {aff_question}\n\nResponse to opponent: {aff_answer}"
    )
    negative = _statement(
        session, Side.NEGATIVE, f"Response to opponent: {neg_answer}\n\nQuestion: {neg_question}"
    )
    return _finish(session, Phase.CROSS_EXAM, affirmative, negative)


async def execute_closing(
    session: Session,
    prompts: PromptsConfig,
    store: PartialSaver | None = None,
) -> Session:
    """Both sides close concurrently with the full debate history in view."""
    validate_transition(session.phase, Phase.CLOSING)
    strict = session.config.strict_mode
    aff_ctx = build_context(session, Side.AFFIRMATIVE, Phase.CLOSING)
    neg_ctx = build_context(session, Side.NEGATIVE, Phase.CLOSING)

    try:
        aff_text, neg_text = await asyncio.gather(
            _generate(session, Side.AFFIRMATIVE, templates.closing(prompts, aff_ctx, strict), aff_ctx),
            _generate(session, Side.NEGATIVE, templates.closing(prompts, neg_ctx, strict), neg_ctx),
        )
    except GenerationFailure as exc:
        handle_critical_error(session, exc, Phase.CLOSING, store)
        raise

    return _finish(
        session,
        Phase.CLOSING,
        _statement(session, Side.AFFIRMATIVE, aff_text),
        _statement(session, Side.NEGATIVE, neg_text),
    )


PHASE_STEPS = (
    execute_preparation,
    execute_opening,
    execute_rebuttal,
    execute_cross_examination,
    execute_closing,
)


async def run_debate(
    session: Session,
    prompts: PromptsConfig,
    store: PartialSaver | None = None,
    on_round_complete: Callable[[DebateRound], None] | None = None,
) -> Session:
    """Run every phase in order and complete the session.

    Args:
        session: A freshly initialized session.
        prompts: Prompt templates from config.
        store: Receives a partial transcript if a phase fails.
        on_round_complete: Optional callback invoked with each new round.

    Returns:
        The COMPLETED session.

    Raises:
        GenerationFailure: If a phase fails; ``exc.session`` is the ERROR session.
    """
    for step in PHASE_STEPS:
        session = await step(session, prompts, store)
        if on_round_complete:
            on_round_complete(session.rounds[-1])
    return complete(session)

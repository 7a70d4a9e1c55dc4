"""Prompt construction for each debate step, plus shared framing for backends."""

from config.config_loader import PromptsConfig
from src.models import DebateContext, Side, Statement

_STANCE = {Side.AFFIRMATIVE: "in favor of", Side.NEGATIVE: "against"}


def format_statements(statements: tuple[Statement, ...] | list[Statement]) -> str:
    """Render statements as ``[SIDE - model]:`` blocks separated by blank lines."""
    return "\n\n".join(
        f"[{s.side.value.upper()} - {s.model}]:\n{s.content}" for s in statements
    )


def _rules(prompts: PromptsConfig, strict: bool) -> str:
    rules = prompts.rules.strip()
    if strict and prompts.strict_rules.strip():
        rules = f"{rules}\n\n{prompts.strict_rules.strip()}".strip()
    return rules


def _render(template: str, prompts: PromptsConfig, context: DebateContext, strict: bool, **extra: object) -> str:
    return template.format(
        topic=context.topic,
        stance=_STANCE[context.side],
        rules=_rules(prompts, strict),
        **extra,
    )


def preparation(prompts: PromptsConfig, context: DebateContext, strict: bool = False) -> str:
    return _render(prompts.preparation, prompts, context, strict)


def opening(prompts: PromptsConfig, context: DebateContext, strict: bool = False) -> str:
    return _render(prompts.opening, prompts, context, strict)


def rebuttal(
    prompts: PromptsConfig, context: DebateContext, opponent_opening: str, strict: bool = False
) -> str:
    return _render(prompts.rebuttal, prompts, context, strict, opponent_opening=opponent_opening)


def cross_exam_question(
    prompts: PromptsConfig,
    context: DebateContext,
    question_count: int,
    exchange: str = "",
    strict: bool = False,
) -> str:
    """Question prompt built from the opponent's visible statements.

    ``exchange`` is the cross-examination text produced so far in this
    round; the second questioner must see the answer it just gave.
    """
    opponent_statements = format_statements(context.previous_statements)
    if exchange:
        opponent_statements = f"{opponent_statements}\n\nCross-examination so far:\n{exchange}".strip()
    return _render(
        prompts.cross_exam_question,
        prompts,
        context,
        strict,
        opponent_statements=opponent_statements,
        question_count=question_count,
    )


def cross_exam_answer(
    prompts: PromptsConfig, context: DebateContext, question: str, strict: bool = False
) -> str:
    return _render(prompts.cross_exam_answer, prompts, context, strict, question=question)


def closing(prompts: PromptsConfig, context: DebateContext, strict: bool = False) -> str:
    return _render(
        prompts.closing,
        prompts,
        context,
        strict,
        debate_summary=format_statements(context.previous_statements),
    )


def build_system_prompt(context: DebateContext) -> str:
    """System framing a backend sends alongside every prompt."""
    system = (
        f"You are participating in a formal debate, arguing {_STANCE[context.side]} "
        f'the topic: "{context.topic}".\n'
        f"Current round: {context.phase.value}\n"
        f"Your position: {context.side.value}\n"
        "Present well-reasoned arguments, use evidence and logic, and engage "
        "constructively with opposing viewpoints."
    )
    if context.preparation_material:
        system += f"\n\nYour preparation notes:\n{context.preparation_material}"
    return system


def build_user_prompt(prompt: str, context: DebateContext) -> str:
    """Prefix the prompt with the statements visible to this side."""
    if not context.previous_statements:
        return prompt
    history = format_statements(context.previous_statements)
    return f"Previous statements in this debate:\n\n{history}\n\n---\n\n{prompt}"

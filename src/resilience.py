"""Resilient generation: deadline, one retry at 1.5x on timeout, error capture."""

import asyncio
import logging
from typing import Protocol

from src.errors import GenerationFailure, GenerationTimeout
from src.models import DebateContext, ErrorEntry, Phase, Session
from src.providers.base import AIProvider
from src.session import fail, with_error

logger = logging.getLogger(__name__)

RETRY_TIMEOUT_FACTOR = 1.5


class PartialSaver(Protocol):
    def save_partial(self, session: Session) -> str: ...


def _failure(agent: AIProvider, context: DebateContext, detail: str) -> GenerationFailure:
    message = f"{agent.name()} ({context.side.value}) failed during {context.phase.value}: {detail}"
    logger.error(message)
    return GenerationFailure(
        ErrorEntry(
            message=message,
            model=agent.name(),
            side=context.side,
            phase=context.phase,
        )
    )


async def generate_resilient(
    agent: AIProvider,
    prompt: str,
    context: DebateContext,
    time_budget: float,
) -> str:
    """Call ``agent.generate`` under a deadline, retrying once on timeout.

    The retry gets ``1.5 * time_budget``. Non-timeout errors are never
    retried, and neither is a failed retry.

    Raises:
        GenerationFailure: With an ``ErrorEntry`` tagged with agent, side and phase.
    """
    try:
        return await asyncio.wait_for(agent.generate(prompt, context), timeout=time_budget)
    except (TimeoutError, GenerationTimeout):
        retry_budget = time_budget * RETRY_TIMEOUT_FACTOR
        logger.warning(
            "%s (%s) timed out after %.1fs in %s, retrying with %.1fs (1.5x)",
            agent.name(), context.side.value, time_budget, context.phase.value, retry_budget,
        )
    except Exception as exc:
        raise _failure(agent, context, str(exc)) from exc

    try:
        return await asyncio.wait_for(agent.generate(prompt, context), timeout=retry_budget)
    except (TimeoutError, GenerationTimeout) as exc:
        raise _failure(
            agent, context, f"timed out again after retry ({retry_budget:.1f}s)"
        ) from exc
    except Exception as exc:
        raise _failure(agent, context, f"retry failed: {exc}") from exc


def handle_critical_error(
    session: Session,
    error: Exception,
    phase: Phase,
    store: PartialSaver | None = None,
) -> Session:
    """Record a fatal error, try to save progress, and move the session to ERROR.

    A failing partial save is logged and swallowed. The returned ERROR session
    is also attached to ``error.session`` when the error supports it; the
    caller re-raises ``error`` unchanged.
    """
    entry = getattr(error, "entry", None)
    if not isinstance(entry, ErrorEntry):
        entry = ErrorEntry(message=str(error), phase=phase)
    failed = with_error(session, entry)

    if store is not None:
        try:
            location = store.save_partial(failed)
            logger.error("Partial transcript saved to: %s", location)
        except Exception as save_exc:
            logger.error("Failed to save partial transcript: %s", save_exc)

    failed = fail(failed)
    if isinstance(error, GenerationFailure):
        error.session = failed
    return failed

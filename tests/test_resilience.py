"""Tests for src/resilience.py — deadlines, the single retry, error capture."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from src.errors import GenerationFailure
from src.models import DebateContext, ErrorEntry, Phase, Side
from src.providers.base import ProviderError, ProviderTimeout
from src.providers.mock import MockProvider, failing
from src.resilience import RETRY_TIMEOUT_FACTOR, generate_resilient, handle_critical_error


@pytest.fixture
def opening_ctx() -> DebateContext:
    return DebateContext(topic="Cats vs dogs", side=Side.AFFIRMATIVE, phase=Phase.OPENING)


class _BrokenStore:
    def save_partial(self, session):
        raise OSError("disk full")


class _RecordingStore:
    def __init__(self):
        self.saved = []

    def save_partial(self, session):
        self.saved.append(session)
        return "/tmp/partial.json"


async def test_success_first_try(opening_ctx):
    agent = MockProvider("agent_a", default_response="Cats are better.")
    text = await generate_resilient(agent, "prompt", opening_ctx, 1.0)
    assert text == "Cats are better."
    assert agent.call_count == 1


async def test_backend_timeout_retried_once(opening_ctx, caplog):
    agent = MockProvider("agent_a")
    agent.generate = AsyncMock(side_effect=[ProviderTimeout("agent_a", "timed out"), "second try"])

    with caplog.at_level(logging.WARNING, logger="src.resilience"):
        text = await generate_resilient(agent, "prompt", opening_ctx, 2.0)

    assert text == "second try"
    assert agent.generate.await_count == 2
    retry_logs = [r for r in caplog.records if "retrying" in r.getMessage()]
    assert len(retry_logs) == 1
    assert "3.0s" in retry_logs[0].getMessage()


async def test_deadline_timeout_retried_with_longer_budget(opening_ctx):
    attempts = []

    async def slow_then_fast(prompt, context):
        attempts.append(prompt)
        if len(attempts) == 1:
            await asyncio.sleep(5)
        return "made it"

    agent = MockProvider("agent_a")
    agent.generate = AsyncMock(side_effect=slow_then_fast)

    text = await generate_resilient(agent, "prompt", opening_ctx, 0.05)
    assert text == "made it"
    assert len(attempts) == 2


async def test_non_timeout_error_not_retried(opening_ctx):
    agent = failing("agent_a", "401 Unauthorized")
    with pytest.raises(GenerationFailure) as excinfo:
        await generate_resilient(agent, "prompt", opening_ctx, 1.0)

    assert agent.call_count == 1
    entry = excinfo.value.entry
    assert entry.model == "agent_a"
    assert entry.side is Side.AFFIRMATIVE
    assert entry.phase is Phase.OPENING
    assert "401 Unauthorized" in entry.message
    assert isinstance(excinfo.value.__cause__, ProviderError)


async def test_second_timeout_fails(opening_ctx):
    agent = MockProvider("agent_a", delay_sec=5)
    with pytest.raises(GenerationFailure) as excinfo:
        await generate_resilient(agent, "prompt", opening_ctx, 0.02)
    assert agent.call_count == 2
    assert "timed out again" in excinfo.value.entry.message


async def test_retry_error_fails_without_third_attempt(opening_ctx):
    agent = MockProvider("agent_a")
    agent.generate = AsyncMock(
        side_effect=[ProviderTimeout("agent_a", "slow"), ProviderError("agent_a", "500")]
    )
    with pytest.raises(GenerationFailure) as excinfo:
        await generate_resilient(agent, "prompt", opening_ctx, 1.0)
    assert agent.generate.await_count == 2
    assert "retry failed" in excinfo.value.entry.message


def test_retry_factor():
    assert RETRY_TIMEOUT_FACTOR == 1.5


def test_handle_critical_error_moves_to_error(new_session):
    entry = ErrorEntry("agent_b failed", model="agent_b", side=Side.NEGATIVE, phase=Phase.PREPARATION)
    error = GenerationFailure(entry)
    store = _RecordingStore()

    failed = handle_critical_error(new_session, error, Phase.PREPARATION, store)

    assert failed.phase is Phase.ERROR
    assert failed.errors == (entry,)
    assert error.session is failed
    assert len(store.saved) == 1
    assert store.saved[0].errors == (entry,)


def test_handle_critical_error_without_entry_builds_one(new_session):
    failed = handle_critical_error(new_session, RuntimeError("unexpected"), Phase.OPENING)
    assert failed.phase is Phase.ERROR
    assert failed.errors[0].message == "unexpected"
    assert failed.errors[0].phase is Phase.OPENING


def test_handle_critical_error_swallows_save_failure(new_session, caplog):
    error = GenerationFailure(ErrorEntry("boom"))
    with caplog.at_level(logging.ERROR, logger="src.resilience"):
        failed = handle_critical_error(new_session, error, Phase.PREPARATION, _BrokenStore())
    assert failed.phase is Phase.ERROR
    assert any("Failed to save partial transcript" in r.getMessage() for r in caplog.records)

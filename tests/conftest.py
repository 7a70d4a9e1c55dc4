"""Shared pytest fixtures."""

from dataclasses import replace
from pathlib import Path

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, PromptsConfig
from src.debate import run_debate
from src.models import DebateConfig, Side, Statement
from src.providers.mock import MockProvider
from src.session import initialize

TOPIC = "Remote work is more productive than office work"


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="mock",
        model="test-model-1",
        api_key_env=None,
        max_tokens=1024,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        preparation="PREP {stance}: {topic}\n{rules}",
        opening="OPEN {stance}: {topic}\n{rules}",
        rebuttal="REBUT {stance}: {topic}\nOpponent opened with: {opponent_opening}\n{rules}",
        cross_exam_question="ASK {question_count} on {topic}\nSeen: {opponent_statements}\n{rules}",
        cross_exam_answer="ANSWER on {topic}\nAsked: {question}\n{rules}",
        closing="CLOSE {stance}: {topic}\nSo far:\n{debate_summary}\n{rules}",
        rules="Be civil.",
        strict_rules="Stay on topic.",
    )


@pytest.fixture
def sample_debate_config() -> DebateConfig:
    return DebateConfig(time_limit_sec=5.0)


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        output_dir=tmp_path / "transcripts",
        affirmative="mock_a",
        negative="mock_b",
    )


@pytest.fixture
def sample_app_config(
    sample_defaults_config: DefaultsConfig,
    sample_prompts_config: PromptsConfig,
    sample_debate_config: DebateConfig,
) -> AppConfig:
    models = {
        "mock_a": ModelConfig(name="mock_a", sdk="mock", model="mock-debater", api_key_env=None, max_tokens=0),
        "mock_b": ModelConfig(name="mock_b", sdk="mock", model="mock-debater", api_key_env=None, max_tokens=0),
        "claude": ModelConfig(
            name="claude",
            sdk="anthropic",
            model="claude-sonnet-4-20250514",
            api_key_env="ANTHROPIC_API_KEY",
            max_tokens=2048,
        ),
    }
    return AppConfig(
        defaults=sample_defaults_config,
        debate=sample_debate_config,
        models=models,
        prompts=sample_prompts_config,
        available_providers={"mock_a", "mock_b"},
    )


@pytest.fixture
def affirmative_agent() -> MockProvider:
    return MockProvider("agent_a")


@pytest.fixture
def negative_agent() -> MockProvider:
    return MockProvider("agent_b")


@pytest.fixture
def new_session(sample_debate_config, affirmative_agent, negative_agent):
    return initialize(TOPIC, sample_debate_config, affirmative_agent, negative_agent)


@pytest.fixture
def sample_statement() -> Statement:
    return Statement(model="agent_a", side=Side.AFFIRMATIVE, content="Remote teams ship more often.")


@pytest.fixture
def cited_session(sample_debate_config, sample_prompts_config):
    """Completed-debate builder whose agents cite sources in preparation and opening."""
    aff = MockProvider(
        "agent_a",
        responses={
            "preparation": "Notes from https://prep.example.org/notes.",
            "opening": "Smith et al. (2020) found gains. See https://example.com/remote-work-study/.",
        },
    )
    neg = MockProvider(
        "agent_b",
        responses={
            "opening": 'Per https://example.com/remote-work-study the data is thin. '
                       '"The Office Paradox" by Jane Doe (2019) disagrees.',
        },
    )

    async def build(**config_changes):
        config = replace(sample_debate_config, **config_changes)
        return await run_debate(initialize(TOPIC, config, aff, neg), sample_prompts_config)

    return build

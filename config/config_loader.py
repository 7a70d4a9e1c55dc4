"""Load settings.yaml into typed dataclasses and merge debate overrides."""

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.models import DebateConfig

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

# SDKs that talk to a local server or nothing at all.
_KEYLESS_SDKS = frozenset({"local", "mock"})

# Environment variable -> DebateConfig field
_ENV_OVERRIDES = {
    "DEBATE_TIME_LIMIT": "time_limit_sec",
    "DEBATE_WORD_LIMIT": "word_limit",
    "DEBATE_STRICT_MODE": "strict_mode",
    "DEBATE_SHOW_PREPARATION": "show_preparation",
    "DEBATE_CROSS_EXAM_QUESTIONS": "cross_exam_questions",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str | None
    max_tokens: int
    temperature: float = 0.7
    base_url: str | None = None


@dataclass
class PromptsConfig:
    preparation: str
    opening: str
    rebuttal: str
    cross_exam_question: str
    cross_exam_answer: str
    closing: str
    rules: str = ""
    strict_rules: str = ""


@dataclass
class DefaultsConfig:
    output_dir: Path
    affirmative: str
    negative: str
    transcript_format: str = "json"


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    debate: DebateConfig
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    available_providers: set[str] = field(default_factory=set)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ValueError(f"not a boolean: {value!r}")


def _as_positive_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    result = float(value)
    if not result > 0 or result == float("inf"):
        raise ValueError(f"must be a positive finite number: {value!r}")
    return result


def _as_word_limit(value: Any) -> int | None:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"must be a positive integer: {value!r}")
    if value == 0 or (isinstance(value, str) and value.strip().lower() in {"", "none", "0"}):
        return None
    result = int(value)
    if result < 0:
        raise ValueError(f"must be a positive integer: {value!r}")
    return result


def _as_question_count(value: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"must be a positive integer: {value!r}")
    result = int(value)
    if result < 1:
        raise ValueError(f"must be a positive integer: {value!r}")
    return result


_VALIDATORS = {
    "time_limit_sec": _as_positive_float,
    "word_limit": _as_word_limit,
    "strict_mode": _as_bool,
    "show_preparation": _as_bool,
    "cross_exam_questions": _as_question_count,
}


def merge_debate_config(
    base: DebateConfig,
    overrides: Mapping[str, Any],
) -> tuple[DebateConfig, list[str]]:
    """Apply overrides on top of ``base``, skipping invalid values.

    Unknown keys and ``None`` values are ignored; a word limit of 0 or "none"
    disables truncation. An invalid value keeps the base value and produces a
    warning.

    Returns:
        (merged_config, warnings)
    """
    changes: dict[str, Any] = {}
    warnings: list[str] = []
    for key, raw in overrides.items():
        if key not in _VALIDATORS or raw is None:
            continue
        try:
            changes[key] = _VALIDATORS[key](raw)
        except (TypeError, ValueError) as exc:
            msg = f"Invalid value for {key} ({exc}), using {getattr(base, key)!r}"
            logger.warning(msg)
            warnings.append(msg)
    return dataclasses.replace(base, **changes), warnings


def debate_overrides_from_env(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect DEBATE_* environment variables as raw override values."""
    env = os.environ if environ is None else environ
    return {field_name: env[var] for var, field_name in _ENV_OVERRIDES.items() if env.get(var, "").strip()}


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs warnings for missing API keys but does not raise — callers check
    available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        output_dir=Path(defaults_raw["output_dir"]),
        affirmative=str(defaults_raw["affirmative"]),
        negative=str(defaults_raw["negative"]),
        transcript_format=str(defaults_raw.get("transcript_format", "json")),
    )

    debate, _ = merge_debate_config(DebateConfig(), raw.get("debate") or {})
    debate, _ = merge_debate_config(debate, debate_overrides_from_env())

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        preparation=prompts_raw["preparation"],
        opening=prompts_raw["opening"],
        rebuttal=prompts_raw["rebuttal"],
        cross_exam_question=prompts_raw["cross_exam_question"],
        cross_exam_answer=prompts_raw["cross_exam_answer"],
        closing=prompts_raw["closing"],
        rules=prompts_raw.get("rules", ""),
        strict_rules=prompts_raw.get("strict_rules", ""),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw.get("api_key_env"),
            max_tokens=int(model_raw.get("max_tokens", 1024)),
            temperature=float(model_raw.get("temperature", 0.7)),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        if model_cfg.sdk in _KEYLESS_SDKS:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
            continue

        api_key = os.environ.get(model_cfg.api_key_env or "", "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s — set %s in .env",
                provider_name,
                model_cfg.api_key_env,
            )

    return AppConfig(
        defaults=defaults,
        debate=debate,
        models=models,
        prompts=prompts,
        available_providers=available_providers,
    )

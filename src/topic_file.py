"""Markdown topic files with optional YAML frontmatter."""

from pathlib import Path
from typing import Any

import frontmatter

# Frontmatter keys understood as debate overrides, mapped to DebateConfig fields.
_SETTING_KEYS = {
    "time_limit": "time_limit_sec",
    "time_limit_sec": "time_limit_sec",
    "word_limit": "word_limit",
    "strict_mode": "strict_mode",
    "strict": "strict_mode",
    "show_preparation": "show_preparation",
    "cross_exam_questions": "cross_exam_questions",
}


def parse_topic_file(file_path: Path) -> tuple[str, dict[str, Any]]:
    """Parse a topic file.

    Returns:
        (topic, metadata) where topic is the body text and metadata the raw
        frontmatter dict. If no frontmatter, metadata is {}.
    """
    post = frontmatter.load(str(file_path))
    return post.content.strip(), dict(post.metadata)


def debate_overrides(metadata: dict[str, Any]) -> dict[str, Any]:
    """Pick the debate-setting keys out of frontmatter metadata."""
    return {field: metadata[key] for key, field in _SETTING_KEYS.items() if key in metadata}

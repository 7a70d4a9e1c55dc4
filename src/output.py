"""Rich console output and markdown file save for debate sessions."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from src.citations import build_bibliography, format_citation
from src.models import DebateRound, ErrorEntry, Phase, Session, Statement

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

PHASE_TITLES = {
    Phase.PREPARATION: "Preparation",
    Phase.OPENING: "Opening Statements",
    Phase.REBUTTAL: "Rebuttals",
    Phase.CROSS_EXAM: "Cross-Examination",
    Phase.CLOSING: "Closing Statements",
}

_SIDE_STYLE = {"affirmative": "green", "negative": "red"}


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _visible_rounds(session: Session) -> list[DebateRound]:
    return [
        r for r in session.rounds
        if session.config.show_preparation or r.phase is not Phase.PREPARATION
    ]


def print_session_header(session: Session) -> None:
    console.print(f"\n[bold cyan]AI Debate[/bold cyan] — {session.topic}")
    console.print(
        f"[green]Affirmative:[/green] {session.affirmative.name()}   "
        f"[red]Negative:[/red] {session.negative.name()}"
    )
    cfg = session.config
    limit = f"{cfg.word_limit} words" if cfg.word_limit else "none"
    console.print(
        Text(
            f"Time limit: {cfg.time_limit_sec:g}s | Word limit: {limit} | "
            f"Strict: {'on' if cfg.strict_mode else 'off'}",
            style="dim",
        )
    )


def _statement_panel(stmt: Statement) -> Panel:
    style = _SIDE_STYLE[stmt.side.value]
    return Panel(
        Markdown(stmt.content),
        title=f"[bold {style}]{stmt.side.value.title()}[/bold {style}] ({stmt.model})",
        subtitle=f"{stmt.word_count} words",
        border_style=style,
    )


def print_round(rnd: DebateRound, show_preparation: bool = True) -> None:
    """Render one round's statements, affirmative first."""
    if rnd.phase is Phase.PREPARATION and not show_preparation:
        console.print("[dim]Preparation complete (hidden).[/dim]")
        return
    console.print(Rule(f"[bold cyan]{PHASE_TITLES.get(rnd.phase, rnd.phase.value)}[/bold cyan]"))
    for stmt in (rnd.affirmative, rnd.negative):
        if stmt is not None:
            console.print(_statement_panel(stmt))


def format_error_notification(entry: ErrorEntry) -> str:
    lines = [f"Error during debate: {entry.message}"]
    if entry.phase:
        lines.append(f"Phase: {entry.phase.value}")
    if entry.side:
        lines.append(f"Side: {entry.side.value}")
    if entry.model:
        lines.append(f"Model: {entry.model}")
    lines.append(f"Time: {entry.timestamp.isoformat()}")
    return "\n".join(lines)


def print_error(entry: ErrorEntry) -> None:
    console.print(Panel(format_error_notification(entry), title="[bold red]Debate failed[/bold red]", border_style="red"))


def print_summary(session: Session) -> None:
    console.print(Rule("[bold green]Debate Complete[/bold green]"))
    duration = (
        f"{(session.completed_at - session.created_at).total_seconds():.1f}s"
        if session.completed_at else "n/a"
    )
    words = sum(
        s.word_count for r in session.rounds for s in (r.affirmative, r.negative) if s is not None
    )
    console.print(
        Text(f"Rounds: {len(session.rounds)} | Words: {words} | Duration: {duration}", style="dim")
    )


def print_bibliography(session: Session) -> None:
    """Print cited sources grouped by side; prints nothing when none were cited."""
    bibliography = build_bibliography(session)
    if not bibliography:
        return
    console.print()
    console.print(Rule("[bold]Bibliography[/bold]"))
    for heading, citations in bibliography.sections():
        console.print(Text(heading, style="bold cyan"))
        for i, citation in enumerate(citations, 1):
            console.print(Text(f"  [{i}] {format_citation(citation)}"))


def save_markdown(session: Session, output_dir: Path, slug_override: str | None = None) -> Path:
    """Save the debate transcript as a markdown file.

    Args:
        session: A completed (or failed) session.
        output_dir: Directory to save the file in.
        slug_override: If provided, use this as the filename stem instead of
            deriving one from the topic.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = slug_override if slug_override is not None else _slug(session.topic)
    filepath = output_dir / f"{timestamp}_{slug}.md"

    lines: list[str] = [
        f"# Debate: {session.topic}",
        "",
        f"**Date:** {session.created_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        f"**Affirmative:** {session.affirmative.name()}",
        f"**Negative:** {session.negative.name()}",
        f"**Status:** {session.phase.value}",
        f"**Rounds:** {len(session.rounds)}",
        "",
        "---",
        "",
    ]

    for rnd in _visible_rounds(session):
        lines.append(f"## {PHASE_TITLES.get(rnd.phase, rnd.phase.value)}")
        lines.append("")
        for stmt in (rnd.affirmative, rnd.negative):
            if stmt is None:
                continue
            lines.append(f"### {stmt.side.value.title()} ({stmt.model})")
            lines.append("")
            lines.append(stmt.content)
            lines.append("")
            lines.append(f"*{stmt.word_count} words*")
            lines.append("")

    bibliography = build_bibliography(session)
    if bibliography:
        lines += ["## Bibliography", ""]
        for heading, citations in bibliography.sections():
            lines += [f"### {heading}", ""]
            lines += [f"{i}. {format_citation(c)}" for i, c in enumerate(citations, 1)]
            lines.append("")

    if session.errors:
        lines += ["## Errors", ""]
        lines += [f"- {e.message}" for e in session.errors]
        lines.append("")

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Debate saved to: %s", filepath)
    return filepath

"""Click CLI — orchestrates config loading, side selection, debate, and output."""

import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import yaml
from dotenv import load_dotenv
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from config.config_loader import AppConfig, ModelConfig, load_config, merge_debate_config
from src.debate import run_debate
from src.errors import GenerationFailure, InvalidTopic, PersistenceFailure
from src.healthcheck import run_health_checks
from src.models import DebateConfig, DebateRound, Session
from src.output import (
    PHASE_TITLES,
    console,
    print_bibliography,
    print_error,
    print_round,
    print_session_header,
    print_summary,
    save_markdown,
)
from src.providers.anthropic import AnthropicProvider
from src.providers.base import AIProvider
from src.providers.gemini import GeminiProvider
from src.providers.local import LocalModelProvider
from src.providers.mock import MockProvider
from src.providers.openai_provider import OpenAIProvider
from src.session import initialize
from src.topic_file import debate_overrides, parse_topic_file
from src.transcript import TranscriptStore

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, Callable[[ModelConfig], AIProvider]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
    "local": LocalModelProvider,
    "mock": MockProvider.from_config,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _build_provider(config: AppConfig, name: str) -> AIProvider:
    """Instantiate the provider configured under ``name``.

    Raises:
        click.ClickException: If the name is unknown, unavailable, or fails to build.
    """
    if name not in config.models:
        raise click.ClickException(
            f"Unknown model '{name}'. Configured: {', '.join(sorted(config.models))}"
        )
    model_cfg = config.models[name]
    if name not in config.available_providers:
        raise click.ClickException(f"Model '{name}' is not available. Set {model_cfg.api_key_env} in .env.")
    factory = PROVIDER_CLASSES.get(model_cfg.sdk)
    if factory is None:
        raise click.ClickException(f"Model '{name}' uses unknown sdk '{model_cfg.sdk}'")
    try:
        return factory(model_cfg)
    except Exception as exc:
        raise click.ClickException(f"Failed to instantiate '{name}': {exc}") from exc


def _determine_sides(
    config: AppConfig,
    affirmative_arg: str | None,
    negative_arg: str | None,
    meta: dict[str, Any],
) -> tuple[str, str]:
    """Returns (affirmative, negative). CLI flag > frontmatter > config default."""
    affirmative = affirmative_arg or meta.get("affirmative") or config.defaults.affirmative
    negative = negative_arg or meta.get("negative") or config.defaults.negative
    return str(affirmative), str(negative)


def _resolve_debate_config(
    base: DebateConfig,
    meta: dict[str, Any],
    cli_overrides: dict[str, Any],
) -> DebateConfig:
    """Apply frontmatter then CLI overrides; invalid values are reported and skipped."""
    config, warnings = merge_debate_config(base, debate_overrides(meta))
    config, more = merge_debate_config(config, cli_overrides)
    for warning in warnings + more:
        console.print(f"[yellow]Warning:[/yellow] {warning}")
    return config


def _check_sides(sides: dict[str, AIProvider]) -> None:
    """Run availability checks on both debaters; exit if either fails."""
    console.print("\n[bold]Checking debaters...[/bold]")
    results = asyncio.run(run_health_checks(sides))
    failed = False
    for label in sides:
        ok, err = results[label]
        if ok:
            console.print(f"  [green]OK  [/green] {label}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {label}: {short_err}")
            failed = True
    if failed:
        console.print("\n[bold red]Error:[/bold red] Both debaters must be reachable.")
        sys.exit(1)
    console.print()


async def _run_with_progress(session: Session, config: AppConfig, store: TranscriptStore) -> Session:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Preparation...", total=None)

        def on_round_complete(rnd: DebateRound) -> None:
            progress.print(f"[green]OK[/green] {PHASE_TITLES[rnd.phase]} complete")
            progress.update(task, description="Next round...")

        return await run_debate(session, config.prompts, store, on_round_complete)


def _save(session: Session, store: TranscriptStore, output_dir: Path, fmt: str) -> Path:
    if fmt == "markdown":
        return save_markdown(session, output_dir)
    return Path(store.save(session))


@click.command()
@click.argument("topic", required=False)
@click.option("--file", "topic_file", type=click.Path(exists=True), help="Read topic from .md file")
@click.option("--affirmative", default=None, help="Model arguing for the topic (default: from config)")
@click.option("--negative", default=None, help="Model arguing against the topic (default: from config)")
@click.option("--time-limit", type=float, default=None, help="Seconds per generation call")
@click.option("--word-limit", type=int, default=None, help="Max words per statement (0 disables)")
@click.option("--strict/--no-strict", "strict_mode", default=None, help="Demand strictly on-topic responses")
@click.option("--show-preparation/--hide-preparation", "show_preparation", default=None,
              help="Show preparation notes in output and transcripts")
@click.option("--cross-exam-questions", type=int, default=None, help="Questions per side in cross-examination")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--format", "fmt", type=click.Choice(["json", "markdown"]), default=None,
              help="Transcript format (default: from config)")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the availability check at startup")
def main(
    topic: str | None,
    topic_file: str | None,
    affirmative: str | None,
    negative: str | None,
    time_limit: float | None,
    word_limit: int | None,
    strict_mode: bool | None,
    show_preparation: bool | None,
    cross_exam_questions: int | None,
    output_path: str | None,
    fmt: str | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """AI Debate -- two models argue a topic through a formal debate.

    \b
    Examples:
      python -m src.cli "Remote work is more productive than office work"
      python -m src.cli "Nuclear power is essential" --affirmative claude --negative ollama
      python -m src.cli --file topic.md --word-limit 300
      python -m src.cli "Test topic" --affirmative mock --negative mock --skip-health-check
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)

    meta: dict[str, Any] = {}
    if topic_file:
        try:
            topic_text, meta = parse_topic_file(Path(topic_file))
        except yaml.YAMLError as exc:
            console.print(f"[bold red]Invalid topic file:[/bold red] {exc}")
            sys.exit(1)
    elif topic is not None:
        topic_text = topic
    else:
        console.print("[bold red]Error:[/bold red] Provide a TOPIC argument or --file.")
        sys.exit(1)

    debate_config = _resolve_debate_config(
        config.debate,
        meta,
        {
            "time_limit_sec": time_limit,
            "word_limit": word_limit,
            "strict_mode": strict_mode,
            "show_preparation": show_preparation,
            "cross_exam_questions": cross_exam_questions,
        },
    )

    aff_name, neg_name = _determine_sides(config, affirmative, negative, meta)
    sides = {
        f"affirmative:{aff_name}": _build_provider(config, aff_name),
        f"negative:{neg_name}": _build_provider(config, neg_name),
    }
    aff_provider, neg_provider = sides.values()

    if not skip_health_check:
        _check_sides(sides)

    try:
        session = initialize(topic_text, debate_config, aff_provider, neg_provider)
    except InvalidTopic as exc:
        console.print(f"[bold red]Invalid topic:[/bold red] {exc}")
        sys.exit(1)

    output_dir = Path(output_path) if output_path else config.defaults.output_dir
    store = TranscriptStore(output_dir)
    print_session_header(session)

    try:
        session = asyncio.run(_run_with_progress(session, config, store))
    except GenerationFailure as exc:
        failed = exc.session or session
        for rnd in failed.rounds:
            print_round(rnd, failed.config.show_preparation)
        print_error(exc.entry)
        partial = store.transcripts_dir / f"partial-{failed.id}.json"
        if partial.exists():
            console.print(f"\n[dim]Partial transcript saved to: {partial}[/dim]")
        sys.exit(1)

    for rnd in session.rounds:
        print_round(rnd, session.config.show_preparation)
    print_summary(session)
    print_bibliography(session)

    try:
        saved_path = _save(session, store, output_dir, fmt or config.defaults.transcript_format)
    except (PersistenceFailure, OSError) as exc:
        console.print(f"[bold red]Could not save transcript:[/bold red] {exc}")
        sys.exit(1)
    console.print(f"\n[dim]Saved to: {saved_path}[/dim]")


if __name__ == "__main__":
    main()

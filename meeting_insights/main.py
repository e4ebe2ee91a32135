"""
Main CLI interface for Meeting Insights.

This module provides the Typer-based command-line interface with commands for:
- Processing the latest meeting recording end to end
- Generating deeper insights from an existing summary
- Inspecting carried-forward open items without calling the backend
"""

import asyncio
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import pyperclip
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .core.config import ConfigError, config, load_env, load_project_env, validate_config
from .core.glossary import GlossaryError, load_glossary, transcription_prompt
from .core.history import load_history
from .core.llm_handler import LLMHandler, LLMHandlerError
from .core.pipeline import MeetingInsightPipeline, PipelineSettings
from .core.progress import reporter
from .core.prompt import date_tag
from .core.reconcile import build_reconciliation
from .core.speech import SpeechError, SpeechProcessor, prepare_recording
from .core.types import PipelineResult
from .core.workspace import WorkspaceError, ensure_directory, latest_recording_stem, meeting_files, read_text_or_empty, write_text

app = typer.Typer(
    name="meeting-insights",
    help="Meeting Insights CLI - corrected transcripts, summaries and carried-forward deeper insights",
    no_args_is_help=True,
)

console = Console()


def _configure(env_file: Optional[str], verbose: bool, debug: bool) -> None:
    """Load env, set up logging and the debug flag. CLI flags override .env."""
    if env_file:
        if not Path(env_file).is_file():
            raise ConfigError(f"Env file not found: {env_file}")
        load_env(env_file)
    else:
        load_project_env()

    if debug:
        os.environ["MI_DEBUG"] = "1"

    logging.basicConfig(
        level=logging.INFO if verbose or debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got '{value}'", param_hint="--date")


def _copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
        console.print("[dim]Deeper insights copied to clipboard[/dim]")
    except Exception:
        # Clipboard access is optional
        pass


def _print_usage(result: PipelineResult) -> None:
    table = Table(title="Token Usage")
    table.add_column("Stage", style="cyan")
    table.add_column("Tokens", style="white", justify="right")
    table.add_row("Summary", "reused" if result.summary_reused else str(result.summary_tokens))
    table.add_row("Deeper insights", str(result.insight_tokens))
    table.add_row("Historical documents", str(result.history_files_count))
    table.add_row("Carried-forward open items", str(len(result.carried_forward_open_items)))
    console.print(table)


async def _process(input_dir: Path, output_dir: Path, glossary: str, now: datetime) -> tuple:
    ensure_directory(input_dir)
    ensure_directory(output_dir)

    stem = latest_recording_stem(input_dir)
    files = meeting_files(input_dir, output_dir, stem)
    console.print(f"[dim]Processing: {files.recording.name}[/dim]")

    if files.transcription.exists():
        reporter.step("Reusing existing transcription…")
        accurate_transcript = read_text_or_empty(files.transcription)
    else:
        reporter.step("Preparing recording…")
        audio_path = prepare_recording(files.recording, files.compressed_recording)
        reporter.step("Transcribing audio…")
        accurate_transcript = await SpeechProcessor().transcribe_audio(audio_path, transcription_prompt(glossary))
        write_text(files.transcription, accurate_transcript)

    existing_summary = read_text_or_empty(files.summary) if files.summary.exists() else None

    pipeline = MeetingInsightPipeline(LLMHandler(str(output_dir)), output_dir, PipelineSettings())
    result = await pipeline.run(
        now=now,
        live_transcript=read_text_or_empty(files.live_transcript),
        accurate_transcript=accurate_transcript,
        glossary=glossary,
        existing_summary=existing_summary,
    )

    reporter.step("Saving documents…")
    if not result.summary_reused:
        write_text(files.summary, result.summary_text)
    write_text(files.deeper_insights, result.deeper_insights_text)
    reporter.complete_step()
    return files, result


@app.command()
def process(
    input_dir: Optional[Path] = typer.Option(None, "--input-dir", "-i", help="Directory with .webm recordings and live-caption .txt files"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory for transcriptions, summaries and deeper insights"),
    glossary_file: Optional[Path] = typer.Option(None, "--glossary", "-g", help="Domain-term glossary file"),
    date: Optional[str] = typer.Option(None, "--date", help="Meeting date (YYYY-MM-DD), defaults to today"),
    env_file: Optional[str] = typer.Option(None, "--env-file", help="Explicit .env file to load"),
    copy: bool = typer.Option(False, "--copy", help="Copy the deeper insights to the clipboard"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show informational log messages"),
    debug: bool = typer.Option(False, "--debug", help="Write JSON debug logs and timings"),
):
    """
    Transcribe the latest recording, summarize it and generate deeper insights.

    Examples:
        meeting-insights process
        meeting-insights process --glossary terms.txt --copy
    """
    try:
        _configure(env_file, verbose, debug)
        now = _parse_date(date)
        in_dir = input_dir or config.input_dir
        out_dir = output_dir or config.output_dir

        with reporter.initialize(console, "Validating configuration…"):
            validate_config()
            glossary = load_glossary(glossary_file or config.glossary_file)
            files, result = asyncio.run(_process(in_dir, out_dir, glossary, now))

        console.print(f"[bold green]Saved:[/bold green] {files.summary}")
        console.print(f"[bold green]Saved:[/bold green] {files.deeper_insights}")
        _print_usage(result)
        if copy:
            _copy_to_clipboard(result.deeper_insights_text)

    except (ConfigError, GlossaryError, WorkspaceError, SpeechError, LLMHandlerError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    finally:
        reporter.reset()


@app.command()
def insights(
    summary_file: Path = typer.Argument(..., help="Existing meeting summary (markdown)"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory holding historical deeper insights"),
    output: Optional[Path] = typer.Option(None, "--output", help="Where to write the deeper insights (default: <output-dir>/<date>-deeper-insights.md)"),
    date: Optional[str] = typer.Option(None, "--date", help="Meeting date (YYYY-MM-DD), defaults to today"),
    env_file: Optional[str] = typer.Option(None, "--env-file", help="Explicit .env file to load"),
    copy: bool = typer.Option(False, "--copy", help="Copy the deeper insights to the clipboard"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show informational log messages"),
    debug: bool = typer.Option(False, "--debug", help="Write JSON debug logs and timings"),
):
    """
    Generate deeper insights from an existing summary.

    Examples:
        meeting-insights insights outputFiles/2025_07_02-summary.md
    """
    try:
        _configure(env_file, verbose, debug)
        now = _parse_date(date)
        out_dir = output_dir or config.output_dir

        if not summary_file.is_file():
            console.print(f"[bold red]Error:[/bold red] Summary file not found: {summary_file}")
            sys.exit(1)
        summary_text = summary_file.read_text(encoding="utf-8")

        with reporter.initialize(console, "Validating configuration…"):
            validate_config()
            pipeline = MeetingInsightPipeline(LLMHandler(str(out_dir)), out_dir, PipelineSettings())
            result = asyncio.run(pipeline.run(now=now, existing_summary=summary_text))
            reporter.step("Saving documents…")
            target = write_text(output or out_dir / f"{date_tag(now)}-deeper-insights.md", result.deeper_insights_text)
            reporter.complete_step()

        console.print(f"[bold green]Saved:[/bold green] {target}")
        _print_usage(result)
        if copy:
            _copy_to_clipboard(result.deeper_insights_text)

    except (ConfigError, LLMHandlerError, OSError, UnicodeDecodeError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    finally:
        reporter.reset()


@app.command("open-items")
def open_items(
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory holding historical deeper insights"),
    date: Optional[str] = typer.Option(None, "--date", help="Treat this date (YYYY-MM-DD) as today"),
    max_documents: Optional[int] = typer.Option(None, "--max", "-m", help="Maximum historical documents to read"),
    newest: bool = typer.Option(False, "--newest/--oldest", help="Read the newest documents instead of the oldest"),
    env_file: Optional[str] = typer.Option(None, "--env-file", help="Explicit .env file to load"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show informational log messages"),
):
    """
    Show carried-forward open items and completed items from history.

    Examples:
        meeting-insights open-items --max 10 --newest
    """
    try:
        _configure(env_file, verbose, False)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    now = _parse_date(date)
    out_dir = output_dir or config.output_dir
    order = "newest" if newest else config.history_order
    limit = max_documents if max_documents is not None else config.history_max_documents
    history = load_history(out_dir, date_tag(now), limit, order)
    reconciliation = build_reconciliation(history)

    if reconciliation.files_count == 0:
        console.print(f"[yellow]No historical deeper insights found in {out_dir}[/yellow]")
        return

    sources = ", ".join(doc.filename for doc in history.documents)
    console.print(f"[dim]Read {reconciliation.files_count} document(s): {sources}[/dim]")

    for title, items, style in [
        ("Open Items (Carried Forward)", reconciliation.historical_open_items, "yellow"),
        ("Completed Items", reconciliation.historical_closed_items, "green"),
    ]:
        table = Table(title=title)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Item", style=style)
        for index, item in enumerate(items, 1):
            table.add_row(str(index), item)
        console.print(table)


if __name__ == "__main__":
    app()

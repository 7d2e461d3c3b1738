"""
CLI interface for Prompt Playground.

Provides command-line access to prompt analysis, generation, history
and usage tracking.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prompt_playground.config.loader import PlaygroundConfig, load_playground_config
from prompt_playground.core.analyzer import AnalysisReport
from prompt_playground.core.analyzer import analyze as analyze_prompt
from prompt_playground.core.language import detect_input_language
from prompt_playground.core.pricing import PRICING_TABLE
from prompt_playground.core.token_counter import estimate_tokens
from prompt_playground.sdk.client import PromptSubmission
from prompt_playground.sdk.playground import Playground
from prompt_playground.sdk.session import (
    NO_API_KEY,
    INVALID_API_KEY,
    EmptyPromptError,
    GenerationError,
)
from prompt_playground.storage.db import initialize_schema
from prompt_playground.storage.models import UsageRecord
from prompt_playground.storage.repository import SQLiteHistoryStore, SQLiteUsageStore

app = typer.Typer()
history_app = typer.Typer(help="Browse and organize saved prompts.")
app.add_typer(history_app, name="history")
usage_app = typer.Typer(help="Show or reset the usage ledger.")
app.add_typer(usage_app, name="usage")
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

DEFAULT_CONFIG_FILE = "playground.yaml"


def _config_option():
    return typer.Option(
        None,
        "--config",
        "-c",
        help=f"Path to YAML config (defaults to ./{DEFAULT_CONFIG_FILE} if present)"
    )


def _load_config(path: Optional[str]) -> PlaygroundConfig:
    """Load the given config file, the default file, or built-in defaults."""
    if path is not None:
        return load_playground_config(path)
    if Path(DEFAULT_CONFIG_FILE).exists():
        return load_playground_config(DEFAULT_CONFIG_FILE)
    return PlaygroundConfig()


def _build_playground(config: PlaygroundConfig, api_key: Optional[str]) -> Playground:
    return Playground.from_config(config, api_key=api_key)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """Prompt Playground CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if ctx.invoked_subcommand is None:
        console.print("Prompt Playground - Use --help to see available commands")


@app.command()
def init(config_path: Optional[str] = _config_option()):
    """Initialize the history and usage database."""
    try:
        config = _load_config(config_path)
        initialize_schema(config.storage.db_path)
        console.print(f"[green]✓[/] Database initialized at {config.storage.db_path}")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def analyze(prompt: str = typer.Argument(..., help="Prompt text to score")):
    """Score a prompt and suggest improvements."""
    _display_report(analyze_prompt(prompt))

    console.print(f"Estimated prompt tokens: {estimate_tokens(prompt)}")
    language = detect_input_language(prompt)
    if language is not None:
        console.print(f"Detected language: {language}")


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Prompt to send"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model identifier"),
    temperature: Optional[float] = typer.Option(
        None, "--temperature", "-t", min=0.0, max=1.0, help="Sampling temperature"
    ),
    stream: Optional[bool] = typer.Option(
        None, "--stream/--no-stream", help="Stream the response as it is generated"
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", envvar="PLAYGROUND_API_KEY", help="Provider API key"
    ),
    config_path: Optional[str] = _config_option()
):
    """Generate a response and record its usage."""
    try:
        config = _load_config(config_path)
        submission = PromptSubmission(
            text=prompt,
            model=model or config.defaults.model,
            temperature=config.defaults.temperature if temperature is None else temperature,
            streaming=config.defaults.streaming if stream is None else stream
        )
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if not PRICING_TABLE.is_known(submission.model):
        console.print(
            f"[yellow]Unknown model '{submission.model}', "
            f"cost estimated at {PRICING_TABLE.fallback_model} rates[/]"
        )

    playground = _build_playground(config, api_key)
    try:
        result = asyncio.run(_run_generation(playground, submission))
    except EmptyPromptError as e:
        console.print(f"[red]Empty prompt:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except GenerationError as e:
        # Streamed text was already printed as it arrived
        _display_generation_error(e, show_partial=not submission.streaming)
        sys.exit(EXIT_CODE_FAIL)

    if not submission.streaming:
        console.print(result.text, markup=False, highlight=False)
    else:
        console.print()

    usage = result.usage
    console.print(
        f"\n[dim]Prompt: {usage.prompt_tokens} tokens | "
        f"Completion: {usage.completion_tokens} tokens | "
        f"Total: {usage.total_tokens} tokens | "
        f"Estimated cost: ${usage.cost:.6f}[/]"
    )
    console.print(f"[dim]Saved to history as {result.history_entry.id}[/]")
    sys.exit(EXIT_CODE_PASS)


async def _run_generation(playground: Playground, submission: PromptSubmission):
    def print_chunk(chunk: str, _text: str) -> None:
        console.print(chunk, end="", markup=False, highlight=False)

    try:
        return await playground.submit(
            submission,
            on_chunk=print_chunk if submission.streaming else None
        )
    finally:
        await playground.aclose()


@history_app.command("list")
def history_list(
    tag: Optional[str] = typer.Option(None, "--tag", help="Only show entries with this tag"),
    config_path: Optional[str] = _config_option()
):
    """List saved prompts, newest first."""
    store = SQLiteHistoryStore(_load_config(config_path).storage.db_path)
    entries = [e for e in store.list() if tag is None or tag in e.tags]
    if not entries:
        console.print("[dim]No saved prompts yet.[/]")
        return

    table = Table(title="Prompt History")
    table.add_column("ID")
    table.add_column("Created")
    table.add_column("Model")
    table.add_column("Prompt")
    table.add_column("Tags")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
            entry.model,
            _truncate(entry.prompt, 50),
            ", ".join(entry.tags)
        )
    console.print(table)


@history_app.command("show")
def history_show(entry_id: str, config_path: Optional[str] = _config_option()):
    """Show one saved prompt and its response."""
    store = SQLiteHistoryStore(_load_config(config_path).storage.db_path)
    entry = store.get(entry_id)
    if entry is None:
        console.print(f"[red]No history entry {entry_id}[/]")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[bold]Model:[/bold] {entry.model} (temperature {entry.temperature})")
    console.print(f"[bold]Created:[/bold] {entry.created_at.isoformat()}")
    if entry.tags:
        console.print(f"[bold]Tags:[/bold] {', '.join(entry.tags)}")
    console.print("\n[bold]Prompt[/bold]")
    console.print(entry.prompt, markup=False, highlight=False)
    console.print("\n[bold]Response[/bold]")
    console.print(entry.response, markup=False, highlight=False)


@history_app.command("tag")
def history_tag(entry_id: str, tag: str, config_path: Optional[str] = _config_option()):
    """Add a tag to a saved prompt."""
    store = SQLiteHistoryStore(_load_config(config_path).storage.db_path)
    if store.add_tag(entry_id, tag) is None:
        console.print(f"[red]No history entry {entry_id}[/]")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Tagged {entry_id} with '{tag}'")


@history_app.command("untag")
def history_untag(entry_id: str, tag: str, config_path: Optional[str] = _config_option()):
    """Remove a tag from a saved prompt."""
    store = SQLiteHistoryStore(_load_config(config_path).storage.db_path)
    if store.remove_tag(entry_id, tag) is None:
        console.print(f"[red]No history entry {entry_id}[/]")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Removed tag '{tag}' from {entry_id}")


@history_app.command("remove")
def history_remove(entry_id: str, config_path: Optional[str] = _config_option()):
    """Delete a saved prompt."""
    store = SQLiteHistoryStore(_load_config(config_path).storage.db_path)
    if not store.remove(entry_id):
        console.print(f"[red]No history entry {entry_id}[/]")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Removed {entry_id}")


@history_app.command("clear")
def history_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_path: Optional[str] = _config_option()
):
    """Delete every saved prompt."""
    if not yes and not typer.confirm("Delete all saved prompts?"):
        raise typer.Abort()
    SQLiteHistoryStore(_load_config(config_path).storage.db_path).clear()
    console.print("[green]✓[/] History cleared")


@usage_app.callback(invoke_without_command=True)
def usage(
    ctx: typer.Context,
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Only count this model"),
    start: Optional[str] = typer.Option(None, "--start", help="First date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="Last date (YYYY-MM-DD)"),
    config_path: Optional[str] = _config_option()
):
    """Show token usage and estimated cost."""
    if ctx.invoked_subcommand is not None:
        return

    store = SQLiteUsageStore(_load_config(config_path).storage.db_path)
    if start is not None or end is not None:
        records = store.by_date(start or "0000-01-01", end or "9999-12-31")
    else:
        records = store.list()
    if model is not None:
        records = [r for r in records if r.model == model]

    if not records:
        console.print("[dim]No usage data yet. Generate responses to track usage.[/]")
        return

    table = Table(title="Usage by Model")
    table.add_column("Model")
    table.add_column("Requests", justify="right")
    table.add_column("Prompt", justify="right")
    table.add_column("Completion", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Est. cost", justify="right")
    for model_name, model_records in _group_by_model(records).items():
        totals = store.totals(model_records)
        table.add_row(
            model_name,
            str(totals["requests"]),
            str(totals["prompt_tokens"]),
            str(totals["completion_tokens"]),
            str(totals["total_tokens"]),
            _format_currency(totals["estimated_cost"])
        )
    console.print(table)

    overall = store.totals(records)
    console.print(
        f"[bold]Total:[/bold] {overall['total_tokens']} tokens, "
        f"{_format_currency(overall['estimated_cost'])}"
    )


@usage_app.command("clear")
def usage_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_path: Optional[str] = _config_option()
):
    """Delete every usage record."""
    if not yes and not typer.confirm("Delete all usage records?"):
        raise typer.Abort()
    SQLiteUsageStore(_load_config(config_path).storage.db_path).clear()
    console.print("[green]✓[/] Usage ledger cleared")


def _group_by_model(records: List[UsageRecord]) -> Dict[str, List[UsageRecord]]:
    grouped: Dict[str, List[UsageRecord]] = {}
    for record in records:
        grouped.setdefault(record.model, []).append(record)
    return grouped


def _format_currency(amount: float) -> str:
    """Format small dollar amounts without hiding fractions of a cent."""
    return f"${amount:,.6f}"


def _truncate(text: str, width: int) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[:width - 1] + "…"


def _display_report(report: AnalysisReport):
    """Display a prompt analysis report."""
    color = "green" if report.score >= 70 else "yellow" if report.score >= 40 else "red"
    console.print(f"\n[bold]Prompt score:[/bold] [{color}]{report.score}/100[/]")
    console.print(f"Prompt type: {report.prompt_type}")
    if report.suggested_templates:
        console.print(f"Suggested templates: {', '.join(report.suggested_templates)}")

    for title, items, style in (
        ("Strengths", report.strengths, "green"),
        ("Weaknesses", report.weaknesses, "red"),
        ("Suggestions", report.suggestions, "cyan"),
    ):
        if items:
            console.print(f"\n[bold]{title}[/bold]")
            for item in items:
                console.print(f"  [{style}]•[/] {item}")

    if report.improved_prompts:
        console.print("\n[bold]Improved prompts[/bold]")
        for number, improved in enumerate(report.improved_prompts, 1):
            console.print(f"  {number}. ", end="")
            console.print(improved, markup=False, highlight=False)

    if report.relevant_templates:
        table = Table(title="Relevant Templates")
        table.add_column("Title")
        table.add_column("Category")
        table.add_column("Template")
        for template in report.relevant_templates:
            table.add_row(escape(template.title), template.category, escape(template.prompt))
        console.print()
        console.print(table)
    console.print()


def _display_generation_error(error: GenerationError, show_partial: bool = True):
    """Display a generation failure with guidance for key problems."""
    if error.error_code == NO_API_KEY:
        console.print("\n[bold yellow]API key required[/]")
        console.print("Pass --api-key, set PLAYGROUND_API_KEY, or add api_key to your config file.")
    elif error.error_code == INVALID_API_KEY:
        console.print("\n[bold red]API key rejected[/]")
        console.print("Check that your API key is valid and try again.")
    else:
        console.print(f"\n[red]Error ({error.error_code}):[/] {error.message}")

    if show_partial and error.partial_text:
        console.print("\n[bold]Partial response[/bold]")
        console.print(error.partial_text, markup=False, highlight=False)


if __name__ == "__main__":
    app()

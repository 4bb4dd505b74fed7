"""Blossom CLI — Typer + Rich terminal interface.

Commands: translate, replay, compact, models, config.
All output is Rich-powered with a live-updating translation card.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.live import Live
from rich.table import Table

from blossom import __version__
from blossom.cli_display import TranslationLiveDisplay, render_parsed, render_partial
from blossom.compaction import compact_messages, estimate_total_size
from blossom.decoding import parse_streaming_translation, parse_translation_content
from blossom.images import load_image_file
from blossom.keys import has_key, load_keys_env
from blossom.providers.litellm_provider import LiteLLMProvider
from blossom.providers.registry import get_model, load_chat_config, load_models
from blossom.schemas.chat import ChatMessage
from blossom.schemas.config import Language
from blossom.session import TranslationSession

# Load API keys from ~/.blossom/keys.env and .env on startup
load_keys_env()

console = Console()

app = typer.Typer(
    name="blossom",
    help="Language tutor chat with streaming translation cards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_MESSAGES_ADAPTER = TypeAdapter(list[ChatMessage])


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"blossom {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log debug output (compaction, retries).",
    ),
) -> None:
    """Blossom — translate with a tutor, card by card."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ── Helpers ──────────────────────────────────────────────────────


def _load_registry():
    """Load the model registry, exit on error."""
    try:
        return load_models()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading models:[/red] {e}")
        raise typer.Exit(1) from None


def _load_config():
    """Load chat config, exit on error."""
    try:
        return load_chat_config()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MiB"
    if size >= 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size} B"


# ── blossom translate ────────────────────────────────────────────


@app.command()
def translate(
    text: str = typer.Argument(..., help="Text to translate or a question for the tutor"),
    image: list[Path] = typer.Option(
        [], "--image", "-i",
        help="Image attachment (repeatable)",
    ),
    model: str | None = typer.Option(
        None, "--model", "-m",
        help="Model registry key (default from config)",
    ),
    language: Language | None = typer.Option(
        None, "--language", "-l",
        help="Source language: ja, zh, ko",
    ),
) -> None:
    """Translate one message with a live translation card."""
    registry = _load_registry()
    config = _load_config()

    if language is not None:
        config = config.model_copy(update={"language": language})

    try:
        model_config = get_model(registry, model or config.model)
        images = [load_image_file(path) for path in image]
    except (ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if not has_key(model_config.api_key_env):
        console.print(f"[red]Missing API key:[/red] set {model_config.api_key_env}")
        raise typer.Exit(1)

    session = TranslationSession(LiteLLMProvider(model_config), config)

    try:
        with TranslationLiveDisplay(console) as display:
            result = asyncio.run(session.send(text, images, on_update=display.update))
    except (TimeoutError, RuntimeError) as e:
        console.print(f"[red]Request failed:[/red] {e}")
        raise typer.Exit(1) from None

    console.print(render_parsed(result.parsed))
    if result.report.was_compacted:
        console.print(
            f"[dim]Request compacted: {result.report.dropped_image_count} image(s), "
            f"{result.report.dropped_message_count} message(s) dropped[/dim]"
        )


# ── blossom replay ───────────────────────────────────────────────


@app.command()
def replay(
    file: Path = typer.Argument(..., help="Saved raw model reply"),
    chunk_size: int = typer.Option(
        8, "--chunk-size", "-c", min=1,
        help="Characters fed to the decoder per step",
    ),
    delay: float = typer.Option(
        0.02, "--delay", min=0.0,
        help="Seconds between steps",
    ),
) -> None:
    """Replay a saved reply through the streaming decoder (offline)."""
    try:
        content = file.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error reading {file}:[/red] {e}")
        raise typer.Exit(1) from None

    with Live(render_partial(None), console=console, transient=True) as live:
        for end in range(chunk_size, len(content) + chunk_size, chunk_size):
            partial = parse_streaming_translation(content[:end])
            if partial is not None:
                live.update(render_partial(partial))
            time.sleep(delay)

    console.print(render_parsed(parse_translation_content(content)))


# ── blossom compact ──────────────────────────────────────────────


@app.command()
def compact(
    file: Path = typer.Argument(..., help="JSON array of chat messages"),
    system: str = typer.Option("", "--system", "-s", help="System prompt text"),
) -> None:
    """Show how a message history would be compacted before sending."""
    config = _load_config()

    try:
        messages = _MESSAGES_ADAPTER.validate_json(file.read_bytes())
    except OSError as e:
        console.print(f"[red]Error reading {file}:[/red] {e}")
        raise typer.Exit(1) from None
    except ValidationError as e:
        console.print(f"[red]Invalid message history:[/red] {e}")
        raise typer.Exit(1) from None

    report = compact_messages(system, messages, config.compaction)
    limit = config.compaction.effective_limit

    table = Table(title="Compaction Report", show_header=False, show_lines=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Messages", f"{len(messages)} → {len(report.messages)}")
    table.add_row(
        "Estimated Size",
        f"{_format_size(estimate_total_size(system, messages))} → "
        f"{_format_size(report.estimated_size)}",
    )
    table.add_row("Budget", _format_size(limit))
    table.add_row("Compacted", str(report.was_compacted))
    table.add_row("Images Dropped", str(report.dropped_image_count))
    table.add_row("Messages Dropped", str(report.dropped_message_count))
    status = (
        "[green]within budget[/green]"
        if report.estimated_size <= limit
        else "[red]over budget[/red]"
    )
    table.add_row("Status", status)
    console.print(table)


# ── blossom models / config ──────────────────────────────────────


@app.command("models")
def models_list() -> None:
    """Show all registered models as a table."""
    registry = _load_registry()

    table = Table(title="Registered Models", show_lines=True)
    table.add_column("Key", style="bold cyan")
    table.add_column("Display Name")
    table.add_column("Provider", style="dim")
    table.add_column("Model ID")
    table.add_column("Vision", justify="center")
    table.add_column("API Key", justify="center")

    for key, cfg in sorted(registry.items()):
        table.add_row(
            key,
            cfg.display_name,
            cfg.provider,
            cfg.model,
            "yes" if cfg.supports_vision else "no",
            "[green]set[/green]" if has_key(cfg.api_key_env) else "[red]not set[/red]",
        )

    console.print(table)
    console.print(f"\n[dim]{len(registry)} models registered[/dim]")


@app.command("config")
def config_show() -> None:
    """Show chat and compaction configuration."""
    chat = _load_config()

    table = Table(title="Chat Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("Model", chat.model)
    table.add_row("Language", chat.language.value)
    table.add_row("Timeout", f"{chat.timeout}s")
    table.add_row("Teacher", chat.teacher_name)
    if chat.personality:
        table.add_row("Personality", chat.personality)
    console.print(table)

    limits = chat.compaction
    compaction_table = Table(title="Compaction", show_header=False, show_lines=True)
    compaction_table.add_column("Setting", style="bold")
    compaction_table.add_column("Value")
    compaction_table.add_row("Hard Limit", _format_size(limits.hard_limit))
    compaction_table.add_row("Safety Margin", _format_size(limits.safety_margin))
    compaction_table.add_row("Effective Limit", _format_size(limits.effective_limit))
    compaction_table.add_row("Images Kept In Tail", str(limits.images_kept_in_tail))
    compaction_table.add_row("Soft Floor", str(limits.soft_floor))
    compaction_table.add_row("Emergency Floor", str(limits.emergency_floor))
    console.print()
    console.print(compaction_table)

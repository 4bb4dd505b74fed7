"""Rich rendering of translation records.

Builds the translation card shown by the CLI, both for partial records
while a reply streams (with a cursor on the field being written) and for
the final parsed record.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from blossom.decoding.decoder import has_any_content
from blossom.schemas.translation import (
    ParsedContent,
    PartialTranslationRecord,
    TranslationContent,
    TranslationField,
    TranslationRecord,
)

_CURSOR = "▌"


def _field_text(value: str | None, style: str, streaming: bool) -> Text:
    text = Text(value or "", style=style)
    if streaming:
        text.append(_CURSOR, style="bold magenta")
    return text


def _breakdown_table(rows: list[tuple[str, str, str, str]], streaming: bool) -> Table:
    table = Table(show_header=True, header_style="bold", expand=True, box=None)
    table.add_column("Word", style="bold cyan")
    table.add_column("Reading", style="green")
    table.add_column("Meaning")
    table.add_column("Part of speech", style="dim")
    for index, row in enumerate(rows):
        if streaming and index == len(rows) - 1:
            table.add_row(*row[:-1], row[-1] + _CURSOR)
        else:
            table.add_row(*row)
    return table


def render_partial(record: PartialTranslationRecord | None) -> RenderableType:
    """Render a partial record as a translation card."""
    if record is None or not has_any_content(record):
        return Panel(Text("Waiting for translation…", style="dim"), border_style="magenta")

    current = None if record.streaming.is_complete else record.streaming.current_field
    parts: list[RenderableType] = []

    if record.original_text is not None:
        parts.append(_field_text(
            record.original_text, "bold", current == TranslationField.ORIGINAL_TEXT
        ))
    if record.subtext is not None:
        parts.append(_field_text(
            record.subtext, "green", current == TranslationField.SUBTEXT
        ))
    if record.translation is not None:
        parts.append(_field_text(
            record.translation, "italic", current == TranslationField.TRANSLATION
        ))
    if record.breakdown is not None:
        rows = [
            (e.word or "", e.reading or "", e.meaning or "", e.part_of_speech or "")
            for e in record.breakdown
        ]
        parts.append(_breakdown_table(rows, current == TranslationField.BREAKDOWN))
    if record.grammar_notes is not None:
        parts.append(Panel(
            _field_text(
                record.grammar_notes, "", current == TranslationField.GRAMMAR_NOTES
            ),
            title="Grammar",
            border_style="dim",
        ))

    title = "Translation" if record.streaming.is_complete else "Translating…"
    return Panel(Group(*parts), title=title, border_style="magenta")


def render_record(record: TranslationRecord) -> RenderableType:
    """Render a complete translation record."""
    rows = [(w.word, w.reading, w.meaning, w.part_of_speech) for w in record.breakdown]
    return Panel(
        Group(
            Text(record.original_text, style="bold"),
            Text(record.subtext, style="green"),
            Text(record.translation, style="italic"),
            _breakdown_table(rows, streaming=False),
            Panel(Text(record.grammar_notes), title="Grammar", border_style="dim"),
        ),
        title="Translation",
        border_style="magenta",
    )


def render_parsed(parsed: ParsedContent) -> RenderableType:
    """Render a finished reply: a translation card or plain text."""
    if isinstance(parsed, TranslationContent):
        return render_record(parsed.data)
    return Panel(Text(parsed.data), border_style="blue")


class TranslationLiveDisplay:
    """Live-updating translation card for a streaming reply.

    Use as a context manager and pass ``update`` as the session's
    on_update callback.
    """

    def __init__(self, console) -> None:
        self._console = console
        self._live: Live | None = None

    def __enter__(self) -> TranslationLiveDisplay:
        self._live = Live(
            render_partial(None),
            console=self._console,
            refresh_per_second=8,
            transient=True,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    def update(self, chunk, partial: PartialTranslationRecord | None) -> None:
        if self._live is None:
            return
        if partial is None and chunk.accumulated:
            self._live.update(Panel(Text(chunk.accumulated), border_style="blue"))
        else:
            self._live.update(render_partial(partial))

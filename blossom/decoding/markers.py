"""Marker-delimited translation replies.

The model wraps its JSON record between start and end markers, with free
text allowed around them. These helpers detect the markers in a streaming
reply, decode the record while it streams, and parse it once complete.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from pydantic import ValidationError

from blossom.decoding.decoder import parse_partial_translation
from blossom.schemas.translation import (
    ParsedContent,
    PartialTranslationRecord,
    TextContent,
    TranslationContent,
    TranslationRecord,
)

TRANSLATION_START = "<<<TRANSLATION_START>>>"
TRANSLATION_END = "<<<TRANSLATION_END>>>"


@dataclass(frozen=True)
class MarkerState:
    """Which translation markers a reply contains so far."""

    has_start: bool
    has_end: bool
    is_complete: bool
    is_starting: bool


def has_translation_markers(content: str) -> MarkerState:
    """Inspect a (possibly partial) reply for translation markers.

    ``is_starting`` is True while the start marker itself is still
    arriving, i.e. the reply ends with a proper prefix of it.
    """
    has_start = TRANSLATION_START in content
    has_end = TRANSLATION_END in content
    is_starting = not has_start and any(
        content.endswith(TRANSLATION_START[:size])
        for size in range(1, len(TRANSLATION_START))
    )
    return MarkerState(
        has_start=has_start,
        has_end=has_end,
        is_complete=has_start and has_end,
        is_starting=is_starting,
    )


def parse_translation_content(content: str) -> ParsedContent:
    """Parse a finished reply into a translation record or plain text.

    Replies without both markers, with invalid or too deeply nested JSON
    between them, or whose record is missing fields are returned as text.
    """
    start = content.find(TRANSLATION_START)
    end = content.find(TRANSLATION_END)
    if start == -1 or end == -1:
        return TextContent(data=content)

    payload = content[start + len(TRANSLATION_START):end].strip()
    try:
        record = TranslationRecord.model_validate(json.loads(payload))
    except (json.JSONDecodeError, RecursionError, ValidationError):
        return TextContent(data=content)

    return TranslationContent(data=record)


def parse_streaming_translation(content: str) -> PartialTranslationRecord | None:
    """Decode the record of a reply that is still streaming.

    Returns None until the start marker has arrived. Once the end marker
    is present the record is flagged complete.
    """
    start = content.find(TRANSLATION_START)
    if start == -1:
        return None

    body = content[start + len(TRANSLATION_START):]
    end = body.find(TRANSLATION_END)
    if end != -1:
        body = body[:end]

    record = parse_partial_translation(body)
    if end != -1:
        record.streaming.is_complete = True
    return record

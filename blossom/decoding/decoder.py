"""Streaming translation decoder.

Rebuilds a partial translation record from the whole JSON buffer received
so far. Every call starts from scratch, so callers can decode on every
chunk, on every Nth chunk, or only at the end of the stream.
"""

from __future__ import annotations

from blossom.decoding.breakdown import extract_breakdown_array
from blossom.decoding.fields import extract_string_field
from blossom.schemas.translation import (
    PartialTranslationRecord,
    StreamingMeta,
    TranslationField,
)

# Evaluation order; the last open field becomes the current one, so an
# open breakdown entry outranks open grammar notes.
_STRING_FIELDS = (
    (TranslationField.ORIGINAL_TEXT, "original_text"),
    (TranslationField.SUBTEXT, "subtext"),
    (TranslationField.TRANSLATION, "translation"),
    (TranslationField.GRAMMAR_NOTES, "grammar_notes"),
)


def parse_partial_translation(buffer: str) -> PartialTranslationRecord:
    """Decode a possibly incomplete translation record.

    Args:
        buffer: Everything the producer has emitted so far (not a delta).

    Returns:
        A fresh PartialTranslationRecord. ``streaming.is_complete`` is
        always False here; the caller sets it once the stream has ended.
    """
    values: dict[str, object] = {}
    current: TranslationField | None = None

    for key, attr in _STRING_FIELDS:
        result = extract_string_field(buffer, key)
        if result.found:
            values[attr] = result.value
            if not result.complete:
                current = key

    breakdown = extract_breakdown_array(buffer)
    if breakdown.items or breakdown.in_progress:
        values["breakdown"] = breakdown.items
        if breakdown.in_progress:
            current = TranslationField.BREAKDOWN

    return PartialTranslationRecord(
        **values, streaming=StreamingMeta(current_field=current)
    )


def has_any_content(record: PartialTranslationRecord) -> bool:
    """Whether a partial record has anything worth rendering yet."""
    return bool(
        record.original_text
        or record.subtext
        or record.translation
        or record.breakdown
        or record.grammar_notes
    )

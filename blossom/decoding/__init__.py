"""Incremental decoding of streamed translation records.

Reconstructs partial translation records from JSON buffers that are still
being written by the model, and parses the final marker-wrapped reply.
"""

from blossom.decoding.breakdown import extract_breakdown_array
from blossom.decoding.decoder import has_any_content, parse_partial_translation
from blossom.decoding.fields import extract_string_field
from blossom.decoding.markers import (
    TRANSLATION_END,
    TRANSLATION_START,
    has_translation_markers,
    parse_streaming_translation,
    parse_translation_content,
)

__all__ = [
    "TRANSLATION_END",
    "TRANSLATION_START",
    "extract_breakdown_array",
    "extract_string_field",
    "has_any_content",
    "has_translation_markers",
    "parse_partial_translation",
    "parse_streaming_translation",
    "parse_translation_content",
]

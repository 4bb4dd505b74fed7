"""Blossom — language tutor chat with streaming translation cards."""

__version__ = "0.1.0"

from .compaction import MessageCompactor, compact_messages
from .decoding import parse_partial_translation, parse_translation_content

__all__ = [
    "MessageCompactor",
    "compact_messages",
    "parse_partial_translation",
    "parse_translation_content",
]

"""Blossom schema definitions.

All Pydantic v2 models shared by the compactor, the decoder, the providers,
and the CLI.
"""

from blossom.schemas.chat import (
    ChatMessage,
    CompactionReport,
    ContentBlock,
    ImageBlock,
    ImageMediaType,
    TextBlock,
)
from blossom.schemas.config import (
    ChatConfig,
    CompactionConfig,
    Language,
    ModelConfig,
)
from blossom.schemas.streaming import StreamChunk
from blossom.schemas.translation import (
    ParsedContent,
    PartialTranslationRecord,
    PartialWordEntry,
    StreamingMeta,
    TextContent,
    TranslationContent,
    TranslationField,
    TranslationRecord,
    WordBreakdown,
)

__all__ = [
    "ChatConfig",
    "ChatMessage",
    "CompactionConfig",
    "CompactionReport",
    "ContentBlock",
    "ImageBlock",
    "ImageMediaType",
    "Language",
    "ModelConfig",
    "ParsedContent",
    "PartialTranslationRecord",
    "PartialWordEntry",
    "StreamChunk",
    "StreamingMeta",
    "TextBlock",
    "TextContent",
    "TranslationContent",
    "TranslationField",
    "TranslationRecord",
    "WordBreakdown",
]

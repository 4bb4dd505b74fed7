"""Translation record schemas.

Defines the final translation record returned by the model, the partial
record reconstructed while the reply is still streaming, and the parsed
content variants used by the rendering layer.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TranslationField(StrEnum):
    """Top-level fields of a translation record, in schema order."""

    ORIGINAL_TEXT = "originalText"
    SUBTEXT = "subtext"
    TRANSLATION = "translation"
    BREAKDOWN = "breakdown"
    GRAMMAR_NOTES = "grammarNotes"


class WordBreakdown(BaseModel):
    """One complete word-level annotation."""

    model_config = ConfigDict(populate_by_name=True)

    word: str
    reading: str
    meaning: str
    part_of_speech: str = Field(alias="partOfSpeech")


class TranslationRecord(BaseModel):
    """A fully received translation record."""

    model_config = ConfigDict(populate_by_name=True)

    original_text: str = Field(alias="originalText")
    subtext: str
    translation: str
    breakdown: list[WordBreakdown]
    grammar_notes: str = Field(alias="grammarNotes")


class PartialWordEntry(BaseModel):
    """A breakdown entry whose fields arrive independently."""

    model_config = ConfigDict(populate_by_name=True)

    word: str | None = None
    reading: str | None = None
    meaning: str | None = None
    part_of_speech: str | None = Field(default=None, alias="partOfSpeech")

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.word, self.reading, self.meaning, self.part_of_speech)
        )


class StreamingMeta(BaseModel):
    """Which field the producer is still writing, for cursor rendering."""

    model_config = ConfigDict(populate_by_name=True)

    is_complete: bool = Field(default=False, alias="isComplete")
    current_field: TranslationField | None = Field(default=None, alias="currentField")


class PartialTranslationRecord(BaseModel):
    """Translation record reconstructed from an incomplete JSON buffer.

    A field is set as soon as its opening ``"key":"`` has been seen, even
    when its value is still being written. Serializes ``streaming`` under
    the ``_streaming`` key when dumped by alias.
    """

    model_config = ConfigDict(populate_by_name=True)

    original_text: str | None = Field(default=None, alias="originalText")
    subtext: str | None = None
    translation: str | None = None
    breakdown: list[PartialWordEntry] | None = None
    grammar_notes: str | None = Field(default=None, alias="grammarNotes")
    streaming: StreamingMeta = Field(default_factory=StreamingMeta, alias="_streaming")


class TranslationContent(BaseModel):
    """Message content that parsed as a complete translation record."""

    type: Literal["translation"] = "translation"
    data: TranslationRecord


class TextContent(BaseModel):
    """Message content rendered as plain text."""

    type: Literal["text"] = "text"
    data: str


ParsedContent = TranslationContent | TextContent

"""Chat message schemas for the outgoing conversation payload.

Defines the content block variants (text and base64 image), the chat
message envelope sent to the model, and the report produced when a
message history is compacted to fit the request size budget.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ImageMediaType(StrEnum):
    """Image formats accepted by the downstream chat API."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    GIF = "image/gif"
    WEBP = "image/webp"


class TextBlock(BaseModel):
    """A plain text part of a multi-block message."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str = Field(description="Text content of the block")


class ImageBlock(BaseModel):
    """A base64-encoded image part of a multi-block message."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    media_type: ImageMediaType = Field(description="MIME type of the encoded image")
    data: str = Field(description="Base64 image payload without a data URI prefix")


ContentBlock = Annotated[TextBlock | ImageBlock, Field(discriminator="type")]


class ChatMessage(BaseModel):
    """A single conversation turn as sent to the model.

    Content is either a plain string or an ordered list of content
    blocks (images followed by text for user turns with attachments).
    """

    role: str = Field(description="Message author role ('user' or 'assistant')")
    content: str | list[ContentBlock] = Field(
        description="Plain text or ordered content blocks"
    )

    def image_count(self) -> int:
        """Number of image blocks carried by this message."""
        if isinstance(self.content, str):
            return 0
        return sum(1 for block in self.content if isinstance(block, ImageBlock))


class CompactionReport(BaseModel):
    """Result of fitting a message history into the request size budget."""

    messages: list[ChatMessage] = Field(
        default_factory=list, description="Messages to transmit, oldest first"
    )
    was_compacted: bool = Field(
        default=False, description="Whether any compaction phase changed the history"
    )
    dropped_image_count: int = Field(
        default=0, ge=0, description="Images replaced by a placeholder"
    )
    dropped_message_count: int = Field(
        default=0, ge=0, description="Oldest messages removed from the history"
    )
    estimated_size: int = Field(
        default=0, ge=0, description="Estimated request size of the returned messages"
    )

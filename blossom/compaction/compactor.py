"""Message compactor for the API request size limit.

Takes the candidate message history for a turn and degrades it until its
estimated size fits the configured budget: images are stripped from older
messages first, then the oldest messages are dropped down to a soft floor,
then down to an emergency floor. The caller's history is never modified.
"""

from __future__ import annotations

import logging

from blossom.compaction.estimator import estimate_total_size
from blossom.schemas.chat import (
    ChatMessage,
    CompactionReport,
    ImageBlock,
    TextBlock,
)
from blossom.schemas.config import CompactionConfig

logger = logging.getLogger(__name__)

_IMAGE_PLACEHOLDER = "[{count} image(s) removed for context management]"


def strip_images(message: ChatMessage) -> tuple[ChatMessage, int]:
    """Replace a message's image blocks with a text placeholder.

    Returns:
        The text-only message and the number of images removed. Messages
        without images are returned unchanged with a count of zero.
    """
    if isinstance(message.content, str):
        return message, 0

    texts: list[str] = []
    image_count = 0
    for block in message.content:
        if isinstance(block, ImageBlock):
            image_count += 1
        elif isinstance(block, TextBlock):
            texts.append(block.text)
        else:
            raise TypeError(f"Unsupported content block: {type(block).__name__}")

    if image_count == 0:
        return message, 0

    placeholder = _IMAGE_PLACEHOLDER.format(count=image_count)
    content = f"{placeholder}\n\n" + "\n".join(texts) if texts else placeholder
    return ChatMessage(role=message.role, content=content), image_count


class MessageCompactor:
    """Fits a message history into the request size budget.

    Phases run in order and each is entered only while the estimate is
    still over ``config.effective_limit``:

    1. strip images from every message outside the recent tail
    2. drop the oldest messages down to ``config.soft_floor``
    3. drop the oldest messages down to ``config.emergency_floor``

    The floors always win over the budget, so the returned history can
    still be over the limit; ``CompactionReport.estimated_size`` lets
    callers check.
    """

    def __init__(self, config: CompactionConfig | None = None) -> None:
        self._config = config or CompactionConfig()

    @property
    def config(self) -> CompactionConfig:
        return self._config

    def compact(
        self, system_prompt: str, messages: list[ChatMessage]
    ) -> CompactionReport:
        """Compact a message history for transmission.

        Args:
            system_prompt: System prompt sent with the request.
            messages: Candidate history, oldest first. Not modified.

        Returns:
            A CompactionReport whose messages are independent copies.
        """
        limit = self._config.effective_limit
        working = [message.model_copy(deep=True) for message in messages]

        current_size = estimate_total_size(system_prompt, working)
        was_compacted = False
        dropped_images = 0
        dropped_messages = 0

        # Phase 1: strip images outside the recent tail
        if current_size > limit:
            threshold = len(working) - self._config.images_kept_in_tail
            logger.info(
                "Request ~%d bytes exceeds %d, stripping images from %d older messages",
                current_size,
                limit,
                max(threshold, 0),
            )
            for index in range(max(threshold, 0)):
                stripped, count = strip_images(working[index])
                if count:
                    working[index] = stripped
                    dropped_images += count
                    was_compacted = True

            current_size = estimate_total_size(system_prompt, working)

        # Phase 2 and 3: drop oldest messages down to each floor in turn
        for floor, phase in (
            (self._config.soft_floor, "soft"),
            (self._config.emergency_floor, "emergency"),
        ):
            if current_size <= limit or len(working) <= floor:
                continue

            logger.info(
                "Request ~%d bytes exceeds %d after image stripping, "
                "%s truncation of %d messages (floor %d)",
                current_size,
                limit,
                phase,
                len(working),
                floor,
            )
            while current_size > limit and len(working) > floor:
                working.pop(0)
                dropped_messages += 1
                current_size = estimate_total_size(system_prompt, working)
            was_compacted = True

        if current_size > limit:
            logger.warning(
                "Request still ~%d bytes (limit %d) with %d messages left",
                current_size,
                limit,
                len(working),
            )

        return CompactionReport(
            messages=working,
            was_compacted=was_compacted,
            dropped_image_count=dropped_images,
            dropped_message_count=dropped_messages,
            estimated_size=current_size,
        )


def compact_messages(
    system_prompt: str,
    messages: list[ChatMessage],
    config: CompactionConfig | None = None,
) -> CompactionReport:
    """Compact ``messages`` with a one-off MessageCompactor."""
    return MessageCompactor(config).compact(system_prompt, messages)

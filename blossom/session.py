"""Translation chat session.

Runs one conversational turn end to end: appends the student's message to
the history, compacts the history for the request size limit, streams the
tutor's reply while decoding the partial translation record on every
chunk, then parses the final reply and records it in the history.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from blossom.compaction import compact_messages
from blossom.decoding import parse_streaming_translation, parse_translation_content
from blossom.images import build_user_message
from blossom.prompts import build_system_prompt
from blossom.providers.base import ChatProvider
from blossom.schemas.chat import ChatMessage, CompactionReport, ImageBlock
from blossom.schemas.config import ChatConfig
from blossom.schemas.streaming import StreamChunk
from blossom.schemas.translation import ParsedContent, PartialTranslationRecord

logger = logging.getLogger(__name__)

UpdateCallback = Callable[
    [StreamChunk, PartialTranslationRecord | None], Awaitable[None] | None
]


@dataclass
class TurnResult:
    """Outcome of one chat turn."""

    content: str
    parsed: ParsedContent
    report: CompactionReport


class TranslationSession:
    """A translation chat with a single provider.

    The history list is shared with the caller and only ever appended to;
    compaction works on copies, so stripped images and dropped messages
    stay in the stored conversation.
    """

    def __init__(
        self,
        provider: ChatProvider,
        config: ChatConfig | None = None,
        history: list[ChatMessage] | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or ChatConfig()
        self.history: list[ChatMessage] = history if history is not None else []
        self.system_prompt = build_system_prompt(self._config)

    async def send(
        self,
        text: str,
        images: list[str | ImageBlock] | None = None,
        on_update: UpdateCallback | None = None,
    ) -> TurnResult:
        """Send a student message and stream the tutor's reply.

        Args:
            text: Message text.
            images: Optional attachments (data URIs, base64, or ImageBlocks).
            on_update: Called with each StreamChunk and the partial record
                       decoded from everything received so far (None until
                       the translation start marker arrives). May be async.

        Returns:
            TurnResult with the raw reply, its parsed form, and the
            compaction report for the request that was sent.
        """
        if images and not self._provider.supports_vision:
            logger.warning(
                "%s does not accept images, sending text only",
                self._provider.display_name,
            )
            images = None

        self.history.append(build_user_message(text, images))

        report = compact_messages(
            self.system_prompt, self.history, self._config.compaction
        )
        if report.was_compacted:
            logger.info(
                "Compacted request: %d image(s) and %d message(s) dropped",
                report.dropped_image_count,
                report.dropped_message_count,
            )

        accumulated = ""
        count = 0
        async for delta in self._provider.stream(
            report.messages, self.system_prompt, timeout=self._config.timeout
        ):
            accumulated += delta
            count += 1
            chunk = StreamChunk(delta=delta, accumulated=accumulated, token_count=count)
            await _notify(on_update, chunk, parse_streaming_translation(accumulated))

        final_chunk = StreamChunk(
            delta="", accumulated=accumulated, token_count=count, is_complete=True
        )
        partial = parse_streaming_translation(accumulated)
        if partial is not None:
            partial.streaming.is_complete = True
        await _notify(on_update, final_chunk, partial)

        self.history.append(ChatMessage(role="assistant", content=accumulated))
        return TurnResult(
            content=accumulated,
            parsed=parse_translation_content(accumulated),
            report=report,
        )


async def _notify(
    callback: UpdateCallback | None,
    chunk: StreamChunk,
    partial: PartialTranslationRecord | None,
) -> None:
    if callback is None:
        return
    result = callback(chunk, partial)
    if inspect.isawaitable(result):
        await result

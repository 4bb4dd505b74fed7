"""Tests for blossom.session — streaming translation turns."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator

import pytest

from blossom.decoding.markers import TRANSLATION_END, TRANSLATION_START
from blossom.providers.base import ChatProvider
from blossom.schemas.chat import ChatMessage, ImageBlock
from blossom.schemas.config import ChatConfig, CompactionConfig, ModelConfig
from blossom.schemas.translation import TextContent, TranslationContent, TranslationField
from blossom.session import TranslationSession

_RECORD = {
    "originalText": "猫",
    "subtext": "ねこ",
    "translation": "cat",
    "breakdown": [{"word": "猫", "reading": "ねこ", "meaning": "cat", "partOfSpeech": "noun"}],
    "grammarNotes": "A bare noun.",
}

_REPLY = (
    f"Here you go!\n{TRANSLATION_START}\n"
    f"{json.dumps(_RECORD, ensure_ascii=False)}\n{TRANSLATION_END}"
)


class FakeProvider(ChatProvider):
    """Streams a canned reply in fixed-size pieces and records calls."""

    def __init__(self, reply: str, step: int = 5, vision: bool = True) -> None:
        super().__init__(ModelConfig(
            provider="fake",
            model="fake/model",
            display_name="Fake",
            supports_vision=vision,
        ))
        self._reply = reply
        self._step = step
        self.calls: list[tuple[list[ChatMessage], str, int]] = []

    async def stream(
        self,
        messages: list[ChatMessage],
        system: str,
        *,
        timeout: int = 300,
    ) -> AsyncIterator[str]:
        self.calls.append((messages, system, timeout))
        for start in range(0, len(self._reply), self._step):
            yield self._reply[start:start + self._step]


class TestSend:
    @pytest.mark.asyncio
    async def test_translation_turn(self):
        provider = FakeProvider(_REPLY)
        session = TranslationSession(provider)

        result = await session.send("猫")

        assert result.content == _REPLY
        assert isinstance(result.parsed, TranslationContent)
        assert result.parsed.data.translation == "cat"
        assert result.report.was_compacted is False
        assert [m.role for m in session.history] == ["user", "assistant"]
        assert session.history[1].content == _REPLY

    @pytest.mark.asyncio
    async def test_sends_system_prompt_and_timeout(self):
        provider = FakeProvider("plain")
        session = TranslationSession(provider, ChatConfig(timeout=12))

        await session.send("hi")

        messages, system, timeout = provider.calls[0]
        assert system == session.system_prompt
        assert TRANSLATION_START in system
        assert timeout == 12
        assert messages == [ChatMessage(role="user", content="hi")]

    @pytest.mark.asyncio
    async def test_plain_reply_is_text(self):
        session = TranslationSession(FakeProvider("Ask me anything."))
        result = await session.send("question?")
        assert isinstance(result.parsed, TextContent)

    @pytest.mark.asyncio
    async def test_updates_stream_partial_records(self):
        updates = []
        session = TranslationSession(FakeProvider(_REPLY, step=3))

        await session.send("猫", on_update=lambda c, p: updates.append((c, p)))

        chunks = [c for c, _ in updates]
        assert [c.token_count for c in chunks[:-1]] == list(range(1, len(chunks)))
        assert all(not c.is_complete for c in chunks[:-1])
        assert chunks[-1].is_complete is True
        assert chunks[-1].delta == ""
        assert chunks[-1].accumulated == _REPLY

        # No record until the start marker has streamed in
        assert updates[0][1] is None
        partials = [p for _, p in updates if p is not None]
        assert partials
        assert any(p.streaming.current_field == TranslationField.BREAKDOWN for p in partials)
        assert partials[-1].streaming.is_complete is True
        assert partials[-1].grammar_notes == "A bare noun."

    @pytest.mark.asyncio
    async def test_final_partial_complete_without_end_marker(self):
        updates = []
        reply = f'{TRANSLATION_START}{{"originalText":"猫'
        session = TranslationSession(FakeProvider(reply))

        result = await session.send("猫", on_update=lambda c, p: updates.append(p))

        assert isinstance(result.parsed, TextContent)
        assert updates[-1].streaming.is_complete is True
        assert updates[-1].original_text == "猫"

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self):
        seen = []

        async def on_update(chunk, partial):
            seen.append(chunk.accumulated)

        session = TranslationSession(FakeProvider("abcdefghij", step=4))
        await session.send("x", on_update=on_update)

        assert seen == ["abcd", "abcdefgh", "abcdefghij", "abcdefghij"]

    @pytest.mark.asyncio
    async def test_future_returning_callback_awaited(self):
        loop = asyncio.get_running_loop()
        futures = []

        def on_update(chunk, partial):
            future = loop.create_future()
            loop.call_soon(future.set_result, None)
            futures.append(future)
            return future

        session = TranslationSession(FakeProvider("abcdefgh", step=4))
        await session.send("x", on_update=on_update)

        assert len(futures) == 3
        assert all(f.done() for f in futures)

    @pytest.mark.asyncio
    async def test_images_attached_before_text(self):
        provider = FakeProvider("ok")
        session = TranslationSession(provider)

        await session.send("read this", ["data:image/png;base64,QUJD"])

        sent = provider.calls[0][0][0]
        assert isinstance(sent.content[0], ImageBlock)
        assert sent.content[1].text == "read this"

    @pytest.mark.asyncio
    async def test_images_dropped_without_vision(self, caplog):
        provider = FakeProvider("ok", vision=False)
        session = TranslationSession(provider)

        with caplog.at_level(logging.WARNING, logger="blossom.session"):
            await session.send("read this", ["QUJD"])

        assert provider.calls[0][0][0].content == "read this"
        assert "does not accept images" in caplog.text


class TestHistory:
    @pytest.mark.asyncio
    async def test_shared_history_appended(self):
        history = [
            ChatMessage(role="user", content="earlier"),
            ChatMessage(role="assistant", content="reply"),
        ]
        session = TranslationSession(FakeProvider("ok"), history=history)

        await session.send("next")

        assert session.history is history
        assert len(history) == 4

    @pytest.mark.asyncio
    async def test_compaction_applies_to_request_only(self):
        config = ChatConfig(
            compaction=CompactionConfig(hard_limit=9000, safety_margin=1000),
        )
        history = [ChatMessage(role="user", content="x" * 1000) for _ in range(12)]
        provider = FakeProvider("ok")
        session = TranslationSession(provider, config, history=list(history))

        result = await session.send("y" * 1000)

        sent = provider.calls[0][0]
        assert result.report.was_compacted is True
        assert result.report.dropped_message_count == 13 - len(sent)
        assert len(sent) >= config.compaction.emergency_floor
        assert sent[-1].content == "y" * 1000
        assert len(session.history) == 14

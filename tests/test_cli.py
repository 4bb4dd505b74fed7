"""Tests for the blossom CLI.

Covers --help, --version, the offline replay and compact commands, the
registry/config tables, and translate with a stubbed provider.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from unittest.mock import patch

from typer.testing import CliRunner

from blossom import __version__
from blossom.cli import app
from blossom.decoding.markers import TRANSLATION_END, TRANSLATION_START
from blossom.providers.base import ChatProvider

# NO_COLOR=1 prevents Rich from injecting ANSI codes inside option names,
# which breaks substring matching in CI (headless, no TTY).
# COLUMNS=200 prevents wrapping that could split a flag across lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})

_RECORD = {
    "originalText": "안녕하세요",
    "subtext": "annyeonghaseyo",
    "translation": "Hello",
    "breakdown": [
        {"word": "안녕하세요", "reading": "annyeonghaseyo", "meaning": "hello", "partOfSpeech": "interjection"},
    ],
    "grammarNotes": "Polite greeting.",
}

_REPLY = f"{TRANSLATION_START}\n{json.dumps(_RECORD, ensure_ascii=False)}\n{TRANSLATION_END}"


class _CannedProvider(ChatProvider):
    def __init__(self, config) -> None:
        super().__init__(config)
        self.calls = []

    async def stream(self, messages, system, *, timeout=300) -> AsyncIterator[str]:
        self.calls.append(messages)
        for start in range(0, len(_REPLY), 7):
            yield _REPLY[start:start + 7]


# ── Help / version ────────────────────────────────────────────────


class TestHelp:
    def test_main_help(self):
        """Main app --help shows all commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("translate", "replay", "compact", "models", "config"):
            assert command in result.output

    def test_translate_help(self):
        result = runner.invoke(app, ["translate", "--help"])
        assert result.exit_code == 0
        assert "--image" in result.output
        assert "--language" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# ── Offline commands ──────────────────────────────────────────────


class TestReplay:
    def test_replays_translation(self, tmp_path):
        path = tmp_path / "reply.txt"
        path.write_text(f"Sure!\n{_REPLY}", encoding="utf-8")

        result = runner.invoke(app, ["replay", str(path), "--delay", "0"])

        assert result.exit_code == 0
        assert "Polite greeting." in result.output

    def test_plain_text_reply(self, tmp_path):
        path = tmp_path / "reply.txt"
        path.write_text("No translation here.", encoding="utf-8")

        result = runner.invoke(app, ["replay", str(path), "--delay", "0", "-c", "50"])

        assert result.exit_code == 0
        assert "No translation here." in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.txt")])
        assert result.exit_code == 1
        assert "Error reading" in result.output


class TestCompact:
    def test_small_history_within_budget(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text(json.dumps([
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]))

        result = runner.invoke(app, ["compact", str(path), "--system", "sys"])

        assert result.exit_code == 0
        assert "Compaction Report" in result.output
        assert "within budget" in result.output
        assert "False" in result.output

    def test_invalid_history(self, tmp_path):
        path = tmp_path / "history.json"
        path.write_text('[{"role": "user"}]')

        result = runner.invoke(app, ["compact", str(path)])

        assert result.exit_code == 1
        assert "Invalid message history" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["compact", str(tmp_path / "nope.json")])
        assert result.exit_code == 1


class TestModelsAndConfig:
    def test_models_table(self):
        result = runner.invoke(app, ["models"])
        assert result.exit_code == 0
        assert "Registered Models" in result.output
        assert "claude-sonnet" in result.output
        assert "gemma3" in result.output

    def test_config_tables(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "Chat Configuration" in result.output
        assert "Sensei" in result.output
        assert "30.0 MiB" in result.output


# ── translate ─────────────────────────────────────────────────────


class TestTranslate:
    def test_translate_renders_card(self):
        with (
            patch("blossom.cli.LiteLLMProvider", _CannedProvider),
            patch("blossom.cli.has_key", return_value=True),
        ):
            result = runner.invoke(app, ["translate", "안녕하세요", "-l", "ko"])

        assert result.exit_code == 0, result.output
        assert "Polite greeting." in result.output

    def test_unknown_model(self):
        result = runner.invoke(app, ["translate", "x", "--model", "gpt-9"])
        assert result.exit_code == 1
        assert "Unknown model" in result.output

    def test_missing_api_key(self):
        with patch("blossom.cli.has_key", return_value=False):
            result = runner.invoke(app, ["translate", "x", "-m", "claude-haiku"])
        assert result.exit_code == 1
        assert "Missing API key" in result.output

    def test_unsupported_image(self, tmp_path):
        path = tmp_path / "scan.tiff"
        path.write_bytes(b"x")
        result = runner.invoke(app, ["translate", "x", "-i", str(path)])
        assert result.exit_code == 1
        assert "Unsupported image type" in result.output

    def test_provider_failure(self):
        class _Failing(_CannedProvider):
            async def stream(self, messages, system, *, timeout=300):
                raise RuntimeError("Authentication failed for test")
                yield  # pragma: no cover

        with (
            patch("blossom.cli.LiteLLMProvider", _Failing),
            patch("blossom.cli.has_key", return_value=True),
        ):
            result = runner.invoke(app, ["translate", "x"])

        assert result.exit_code == 1
        assert "Request failed" in result.output

"""Tests for blossom.providers.registry — TOML config loading and model registry."""

from pathlib import Path

import pytest

from blossom.providers.registry import get_model, load_chat_config, load_models
from blossom.schemas.config import ChatConfig, Language, MiB, ModelConfig

# Path to the real config files shipped with the package
_CONFIG_DIR = Path(__file__).parent.parent / "blossom" / "config"


class TestLoadModels:
    def test_loads_real_config(self):
        registry = load_models(_CONFIG_DIR / "models.toml")
        assert set(registry) >= {"claude-sonnet", "claude-haiku", "gemma3"}

    def test_default_path(self):
        assert load_models() == load_models(_CONFIG_DIR / "models.toml")

    def test_model_config_types(self):
        registry = load_models(_CONFIG_DIR / "models.toml")
        for key, model in registry.items():
            assert isinstance(model, ModelConfig), f"{key} is not ModelConfig"
            assert model.provider != ""
            assert model.model != ""
            assert model.display_name != ""
            assert model.max_tokens > 0

    def test_ollama_needs_no_key(self):
        gemma = load_models(_CONFIG_DIR / "models.toml")["gemma3"]
        assert gemma.provider == "ollama"
        assert gemma.api_key_env == ""
        assert gemma.api_base == "http://localhost:11434"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_models(tmp_path / "nope.toml")

    def test_missing_models_section_raises(self, tmp_path):
        path = tmp_path / "models.toml"
        path.write_text("[other]\nkey = 1\n")
        with pytest.raises(ValueError, match=r"No \[models\] section"):
            load_models(path)

    def test_custom_registry(self, tmp_path):
        path = tmp_path / "models.toml"
        path.write_text(
            '[models.local]\n'
            'provider = "ollama"\n'
            'model = "ollama/qwen2.5:7b"\n'
            'display_name = "Qwen"\n'
        )
        registry = load_models(path)
        assert list(registry) == ["local"]
        assert registry["local"].supports_vision is False


class TestLoadChatConfig:
    def test_loads_real_defaults(self):
        config = load_chat_config(_CONFIG_DIR / "defaults.toml")
        assert isinstance(config, ChatConfig)
        assert config.model == "claude-sonnet"
        assert config.language == Language.JAPANESE
        assert config.timeout == 300
        assert config.compaction.hard_limit == 32 * MiB
        assert config.compaction.effective_limit == 30 * MiB

    def test_defaults_when_sections_missing(self, tmp_path):
        path = tmp_path / "defaults.toml"
        path.write_text("")
        assert load_chat_config(path) == ChatConfig()

    def test_overrides(self, tmp_path):
        path = tmp_path / "defaults.toml"
        path.write_text(
            '[chat]\nlanguage = "ko"\nteacher_name = "Seonsaengnim"\n\n'
            "[compaction]\nhard_limit = 1000\nsafety_margin = 100\n"
        )
        config = load_chat_config(path)
        assert config.language == Language.KOREAN
        assert config.teacher_name == "Seonsaengnim"
        assert config.compaction.effective_limit == 900
        assert config.compaction.soft_floor == 10

    def test_invalid_value_raises(self, tmp_path):
        path = tmp_path / "defaults.toml"
        path.write_text('[chat]\nlanguage = "fr"\n')
        with pytest.raises(ValueError):
            load_chat_config(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_chat_config(tmp_path / "nope.toml")


class TestGetModel:
    def test_known_key(self):
        registry = load_models(_CONFIG_DIR / "models.toml")
        assert get_model(registry, "claude-haiku").max_tokens == 1024

    def test_unknown_key_lists_available(self):
        registry = load_models(_CONFIG_DIR / "models.toml")
        with pytest.raises(ValueError, match="Available: claude-haiku"):
            get_model(registry, "gpt-9")

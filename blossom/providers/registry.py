"""Model registry and TOML configuration loader.

Loads model definitions from models.toml and chat defaults (including the
compaction budget) from defaults.toml.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from blossom.schemas.config import ChatConfig, CompactionConfig, ModelConfig

# Default config directory relative to the blossom package
_CONFIG_DIR = Path(__file__).parent.parent / "config"


def load_models(config_path: Path | None = None) -> dict[str, ModelConfig]:
    """Load the model registry from a TOML file.

    Args:
        config_path: Path to models.toml. Defaults to blossom/config/models.toml.

    Returns:
        Dictionary mapping model keys to ModelConfig instances.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid.
    """
    path = config_path or _CONFIG_DIR / "models.toml"
    if not path.exists():
        raise FileNotFoundError(f"Model registry not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    models_section = raw.get("models")
    if not models_section or not isinstance(models_section, dict):
        raise ValueError(f"No [models] section found in {path}")

    return {
        key: ModelConfig(**entry)
        for key, entry in models_section.items()
        if isinstance(entry, dict)
    }


def load_chat_config(config_path: Path | None = None) -> ChatConfig:
    """Load chat defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to blossom/config/defaults.toml.

    Returns:
        ChatConfig with values from the TOML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If a value fails validation.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Chat config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    chat_section = raw.get("chat", {})
    compaction = CompactionConfig(**raw.get("compaction", {}))
    return ChatConfig(**chat_section, compaction=compaction)


def get_model(registry: dict[str, ModelConfig], key: str) -> ModelConfig:
    """Look up a model by registry key.

    Raises:
        ValueError: If the key is not in the registry.
    """
    if key not in registry:
        available = ", ".join(sorted(registry))
        raise ValueError(f"Unknown model '{key}'. Available: {available}")
    return registry[key]

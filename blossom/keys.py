"""API key management for Blossom.

Keys are stored in ~/.blossom/keys.env and loaded with this priority:
  1. Environment variables (highest — already set in shell)
  2. ~/.blossom/keys.env (user's saved keys)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

BLOSSOM_HOME = Path.home() / ".blossom"
KEYS_FILE = BLOSSOM_HOME / "keys.env"

# Env vars of providers that need a key (Ollama runs locally without one)
PROVIDER_KEYS = ("ANTHROPIC_API_KEY",)


def load_keys_env(files: list[Path] | None = None) -> None:
    """Load API keys from keys.env files into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over
    later ones.
    """
    for env_file in files if files is not None else [KEYS_FILE, Path.cwd() / ".env"]:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def save_keys(keys: dict[str, str], path: Path | None = None) -> Path:
    """Save API keys to ~/.blossom/keys.env (only non-empty values).

    Returns:
        Path to the saved file.
    """
    path = path or KEYS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["# Blossom API Keys", ""]
    lines.extend(f"{env_var}={value}" for env_var, value in keys.items() if value)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    # Restrict permissions on Unix (best-effort)
    try:
        path.chmod(0o600)
    except OSError:
        logger.debug("Could not restrict permissions on %s", path)

    return path


def has_key(env_var: str) -> bool:
    """Whether a key is available, or none is needed (empty env var name)."""
    if not env_var:
        return True
    load_keys_env()
    return bool(os.environ.get(env_var))

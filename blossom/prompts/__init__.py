"""Prompt template loader for the tutor system prompt.

Loads Markdown prompt templates from the prompts/ directory and renders
them with Jinja2 variable substitution.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import BaseLoader, Environment

from blossom.decoding.markers import TRANSLATION_END, TRANSLATION_START
from blossom.schemas.config import ChatConfig, Language

# Directory containing the .md prompt template files
_PROMPTS_DIR = Path(__file__).parent

_LANGUAGE_NAMES = {
    Language.JAPANESE: "Japanese",
    Language.CHINESE: "Chinese",
    Language.KOREAN: "Korean",
}


def render_prompt(template_name: str, **variables: object) -> str:
    """Load a prompt template and render it with Jinja2 variables.

    Raises:
        FileNotFoundError: If the template file does not exist.
    """
    path = _PROMPTS_DIR / f"{template_name}.md"
    if not path.exists():
        raise FileNotFoundError(f"Prompt template not found: {path}")

    # Default Undefined renders as empty, so optional {% if %} blocks skip
    env = Environment(loader=BaseLoader(), keep_trailing_newline=True)
    return env.from_string(path.read_text(encoding="utf-8")).render(**variables)


def build_system_prompt(config: ChatConfig) -> str:
    """Render the translator system prompt for a chat configuration."""
    return render_prompt(
        "translator",
        language=_LANGUAGE_NAMES[config.language],
        teacher_name=config.teacher_name,
        personality=config.personality,
        start_marker=TRANSLATION_START,
        end_marker=TRANSLATION_END,
    )

"""Configuration schemas for models, chat defaults, and compaction limits.

Loaded from the TOML files under blossom/config/ by the registry and
overridden by CLI flags.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

MiB = 1024 * 1024


class Language(StrEnum):
    """Languages the tutor translates from."""

    JAPANESE = "ja"
    CHINESE = "zh"
    KOREAN = "ko"


class ModelConfig(BaseModel):
    """Configuration for a single LLM model in the registry.

    Loaded from models.toml. Each entry provides the LiteLLM routing
    information and capability flags.
    """

    provider: str = Field(description="Provider identifier (e.g. 'anthropic', 'ollama')")
    model: str = Field(description="LiteLLM model identifier (e.g. 'anthropic/claude-sonnet-4')")
    display_name: str = Field(description="Human-friendly model name for CLI output")
    api_key_env: str = Field(
        default="", description="Environment variable holding the API key (empty = none)"
    )
    api_base: str = Field(default="", description="Custom API base URL (empty = provider default)")
    max_tokens: int = Field(default=4096, gt=0, description="Maximum tokens to generate")
    supports_vision: bool = Field(
        default=False, description="Whether the model supports image inputs"
    )


class CompactionConfig(BaseModel):
    """Request size budget and truncation floors for message compaction."""

    hard_limit: int = Field(
        default=32 * MiB, gt=0, description="Maximum request size accepted by the API"
    )
    safety_margin: int = Field(
        default=2 * MiB, ge=0, description="Headroom reserved for serialization overhead"
    )
    images_kept_in_tail: int = Field(
        default=4, ge=0, description="Most recent messages whose images are never stripped"
    )
    soft_floor: int = Field(
        default=10, ge=0, description="Message count soft truncation stops at"
    )
    emergency_floor: int = Field(
        default=5, ge=0, description="Message count emergency truncation stops at"
    )

    @model_validator(mode="after")
    def _check_limits(self) -> CompactionConfig:
        if self.safety_margin >= self.hard_limit:
            raise ValueError("safety_margin must be smaller than hard_limit")
        if self.emergency_floor > self.soft_floor:
            raise ValueError("emergency_floor must not exceed soft_floor")
        return self

    @property
    def effective_limit(self) -> int:
        """Size budget the compactor aims for."""
        return self.hard_limit - self.safety_margin


class ChatConfig(BaseModel):
    """Top-level configuration for a translation chat.

    Loaded from defaults.toml. Controls the default model, target
    language, tutor persona, timeouts, and the compaction budget.
    """

    model: str = Field(default="claude-sonnet", description="Registry key of the chat model")
    language: Language = Field(default=Language.JAPANESE, description="Source language")
    timeout: int = Field(default=300, gt=0, description="Timeout in seconds for a model call")
    teacher_name: str = Field(default="Sensei", description="Name the tutor answers to")
    personality: str = Field(default="", description="Optional persona instructions")
    compaction: CompactionConfig = Field(
        default_factory=CompactionConfig, description="Request size budget"
    )

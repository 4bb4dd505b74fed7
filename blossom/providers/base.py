"""Abstract base class for chat model providers.

Defines the ChatProvider interface every LLM adapter implements. The
translation session talks to models exclusively through this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from blossom.schemas.chat import ChatMessage
from blossom.schemas.config import ModelConfig


class ChatProvider(ABC):
    """Abstract interface for any LLM that can hold a translation chat.

    Initialized from a ModelConfig loaded from the TOML registry.
    Providers stream text deltas; ``complete`` is derived from ``stream``
    unless a provider has a cheaper non-streaming path.
    """

    def __init__(self, config: ModelConfig) -> None:
        self._config = config

    @property
    def provider_id(self) -> str:
        """Provider identifier (e.g. 'anthropic', 'ollama')."""
        return self._config.provider

    @property
    def model_id(self) -> str:
        """LiteLLM model identifier used for routing."""
        return self._config.model

    @property
    def display_name(self) -> str:
        """Human-friendly model name for CLI output."""
        return self._config.display_name

    @property
    def supports_vision(self) -> bool:
        """Whether the model accepts image blocks."""
        return self._config.supports_vision

    @property
    def config(self) -> ModelConfig:
        """The full ModelConfig backing this provider."""
        return self._config

    @abstractmethod
    def stream(
        self,
        messages: list[ChatMessage],
        system: str,
        *,
        timeout: int = 300,
    ) -> AsyncIterator[str]:
        """Stream the reply to a conversation as text deltas.

        Args:
            messages: Conversation history to send, oldest first. Already
                      compacted by the caller.
            system: System prompt for this call.
            timeout: Timeout in seconds for the model call.

        Yields:
            Non-empty text deltas in arrival order.

        Raises:
            TimeoutError: If opening the stream times out after all retries.
            RuntimeError: If the model call fails after all retries.
        """

    async def complete(
        self,
        messages: list[ChatMessage],
        system: str,
        *,
        timeout: int = 300,
    ) -> str:
        """Return the full reply to a conversation.

        Default implementation drains ``stream``.
        """
        parts = [delta async for delta in self.stream(messages, system, timeout=timeout)]
        return "".join(parts)

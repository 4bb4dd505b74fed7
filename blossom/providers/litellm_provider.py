"""Universal LiteLLM adapter implementing the ChatProvider interface.

Routes chat requests to Anthropic, Ollama, or any other LiteLLM-supported
backend. Converts chat messages (with image blocks) into the OpenAI-style
wire format, streams text deltas, and retries transient failures with
exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from blossom.images import to_data_uri
from blossom.providers.base import ChatProvider
from blossom.schemas.chat import ChatMessage, ImageBlock, TextBlock
from blossom.schemas.config import ModelConfig

logger = logging.getLogger(__name__)

# Max retries for transient failures
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error."""
    error_str = str(error).lower()
    if "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    return str(error)[:80]


def to_wire_message(message: ChatMessage) -> dict:
    """Convert a ChatMessage to the OpenAI-style dict LiteLLM accepts."""
    if isinstance(message.content, str):
        return {"role": message.role, "content": message.content}

    parts: list[dict] = []
    for block in message.content:
        if isinstance(block, ImageBlock):
            parts.append({"type": "image_url", "image_url": {"url": to_data_uri(block)}})
        elif isinstance(block, TextBlock):
            parts.append({"type": "text", "text": block.text})
        else:
            raise TypeError(f"Unsupported content block: {type(block).__name__}")
    return {"role": message.role, "content": parts}


def to_wire_messages(system: str, messages: list[ChatMessage]) -> list[dict]:
    """Build the full request message list with the system prompt first."""
    return [{"role": "system", "content": system}, *(to_wire_message(m) for m in messages)]


class LiteLLMProvider(ChatProvider):
    """Chat provider powered by LiteLLM.

    Routes calls through litellm.acompletion(). This is the only place
    models are called; no provider SDK is imported anywhere else.
    """

    def __init__(self, config: ModelConfig) -> None:
        super().__init__(config)
        self._api_key = os.environ.get(config.api_key_env, "") if config.api_key_env else ""

    async def stream(
        self,
        messages: list[ChatMessage],
        system: str,
        *,
        timeout: int = 300,
    ) -> AsyncIterator[str]:
        """Stream reply deltas via LiteLLM.

        Only opening the stream is retried; a stream that breaks midway
        raises to the caller.
        """
        kwargs = self._build_completion_kwargs(to_wire_messages(system, messages), timeout)
        kwargs["stream"] = True

        response = await self._call_with_retry(kwargs)

        async for chunk in response:
            delta = ""
            if chunk.choices and chunk.choices[0].delta:
                delta = chunk.choices[0].delta.content or ""
            if delta:
                yield delta

    async def complete(
        self,
        messages: list[ChatMessage],
        system: str,
        *,
        timeout: int = 300,
    ) -> str:
        """Send a non-streaming request and return the reply text."""
        kwargs = self._build_completion_kwargs(to_wire_messages(system, messages), timeout)
        response = await self._call_with_retry(kwargs)
        if not response.choices:
            return ""
        message = response.choices[0].message
        return message.content or "" if message else ""

    def _build_completion_kwargs(self, messages: list[dict], timeout: int) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        kwargs: dict = {
            "model": self._config.model,
            "messages": messages,
            "max_tokens": self._config.max_tokens,
            "timeout": float(timeout),
        }

        if self._api_key:
            kwargs["api_key"] = self._api_key

        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base

        return kwargs

    async def _call_with_retry(self, kwargs: dict):
        """Call litellm.acompletion with exponential backoff retry.

        Retries on transient errors (rate limits, server errors, timeouts).
        Non-retryable errors (auth, invalid request) are raised immediately.

        Raises:
            TimeoutError: If all retries time out.
            RuntimeError: If all retries fail with non-timeout errors.
        """
        last_error: Exception | None = None

        for attempt in range(_MAX_RETRIES):
            try:
                return await litellm.acompletion(**kwargs)
            except TimeoutError:
                last_error = TimeoutError(
                    f"Model call timed out after {kwargs.get('timeout')}s "
                    f"(attempt {attempt + 1}/{_MAX_RETRIES})"
                )
            except litellm.AuthenticationError:
                raise RuntimeError(
                    f"Authentication failed for {self._config.model}. "
                    f"Check that {self._config.api_key_env} is set correctly."
                ) from None
            except litellm.BadRequestError as e:
                raise RuntimeError(
                    f"Bad request to {self._config.model}: {e}"
                ) from e
            except (
                litellm.RateLimitError,
                litellm.ServiceUnavailableError,
                litellm.InternalServerError,
                litellm.APIConnectionError,
            ) as e:
                last_error = e

            if attempt < _MAX_RETRIES - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1,
                    _MAX_RETRIES,
                    self._config.display_name,
                    _short_error_reason(last_error),
                    backoff,
                )
                await asyncio.sleep(backoff)

        if isinstance(last_error, TimeoutError):
            raise last_error
        raise RuntimeError(
            f"Model call to {self._config.model} failed after {_MAX_RETRIES} "
            f"retries: {last_error}"
        ) from last_error

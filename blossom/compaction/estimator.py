"""Request size estimation for chat payloads.

Approximates the serialized size of messages from their content lengths
instead of serializing them. The figures only depend on message content,
so repeated estimates of the same history always agree.
"""

from __future__ import annotations

from blossom.schemas.chat import ChatMessage, ImageBlock, TextBlock

# Per-part JSON overhead
_TEXT_MESSAGE_OVERHEAD = 50
_BLOCK_MESSAGE_OVERHEAD = 100
_TEXT_BLOCK_OVERHEAD = 50
_IMAGE_BLOCK_OVERHEAD = 150

# System prompt envelope + request wrapper
_REQUEST_OVERHEAD = 500


def estimate_block_size(block: TextBlock | ImageBlock) -> int:
    """Estimate the serialized size of one content block."""
    if isinstance(block, ImageBlock):
        return len(block.data) + _IMAGE_BLOCK_OVERHEAD
    if isinstance(block, TextBlock):
        return len(block.text) + _TEXT_BLOCK_OVERHEAD
    raise TypeError(f"Unsupported content block: {type(block).__name__}")


def estimate_message_size(message: ChatMessage) -> int:
    """Estimate the serialized size of a single message."""
    if isinstance(message.content, str):
        return len(message.content) + _TEXT_MESSAGE_OVERHEAD

    return _BLOCK_MESSAGE_OVERHEAD + sum(
        estimate_block_size(block) for block in message.content
    )


def estimate_total_size(system_prompt: str, messages: list[ChatMessage]) -> int:
    """Estimate the serialized size of a whole request.

    Args:
        system_prompt: System prompt sent alongside the messages.
        messages: Conversation history, oldest first.

    Returns:
        Approximate request body size in characters.
    """
    total = len(system_prompt) + _REQUEST_OVERHEAD
    for message in messages:
        total += estimate_message_size(message)
    return total

"""Chat model providers and the TOML model registry."""

from blossom.providers.base import ChatProvider
from blossom.providers.litellm_provider import LiteLLMProvider
from blossom.providers.registry import get_model, load_chat_config, load_models

__all__ = [
    "ChatProvider",
    "LiteLLMProvider",
    "get_model",
    "load_chat_config",
    "load_models",
]

"""Request compaction for the chat API size limit.

Estimates the serialized size of a conversation and degrades it (images
first, then oldest messages) until it fits the configured budget.
"""

from blossom.compaction.compactor import MessageCompactor, compact_messages
from blossom.compaction.estimator import estimate_message_size, estimate_total_size

__all__ = [
    "MessageCompactor",
    "compact_messages",
    "estimate_message_size",
    "estimate_total_size",
]

"""AI assistant chat scoped to a deal or a portfolio company.

Responsibilities:
    - Calling the inference webhooks and decoding their loose reply shape
    - Simulated token-by-token reveal of complete replies
    - Conversation lifecycle and message persistence through the backend

The presenter makes no network calls; persistence happens in the
completion callback supplied by the chat service.
"""

from dealroom.chat.presenter import AsyncioInterval, StreamingPresenter, reveal_prefixes
from dealroom.chat.service import ChatService
from dealroom.chat.webhook import (
    InferenceClient,
    InferenceError,
    InvalidReplyError,
    NoUsableReplyError,
    decode_reply,
)

__all__ = [
    "AsyncioInterval",
    "ChatService",
    "InferenceClient",
    "InferenceError",
    "InvalidReplyError",
    "NoUsableReplyError",
    "StreamingPresenter",
    "decode_reply",
    "reveal_prefixes",
]

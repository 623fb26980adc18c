"""Pydantic schemas for the Parlor API."""

from .conversation import ConversationListResponse, ConversationSummary, StatusMessage
from .direct_message import (
    ConversationResponse,
    DirectMessageCreate,
    DirectMessageEdit,
    DirectMessageView,
    MessageEnvelope,
    ReactionResponse,
    ReactionSummary,
    ReactionToggle,
    ReplySnapshot,
)
from .user import PublicProfile

__all__ = [
    "ConversationListResponse", "ConversationSummary", "StatusMessage",
    "ConversationResponse", "DirectMessageCreate", "DirectMessageEdit",
    "DirectMessageView", "MessageEnvelope", "ReactionResponse", "ReactionSummary",
    "ReactionToggle", "ReplySnapshot",
    "PublicProfile",
]

"""SQLAlchemy models for the Parlor application."""

from .conversation import ConversationEntry, HiddenConversation
from .direct_message import DirectMessage, MessageReaction
from .system_clock import SystemClock
from .user import BlockedUser, User

__all__ = [
    "BlockedUser",
    "ConversationEntry", "HiddenConversation",
    "DirectMessage", "MessageReaction",
    "SystemClock",
    "User",
]

"""Business logic services for the Parlor application."""

from .authenticator import AuthenticatedUser, ConnectionAuthenticator
from .connection import LiveConnection
from .conversation_list import ConversationListBuilder
from .conversation_store import ConversationStore
from .dm_router import DirectMessageRouter
from .presence import PresenceRegistry, get_presence_registry
from .rooms import RoomHub, get_room_hub, room_name
from .visibility import ConversationVisibility

__all__ = [
    "AuthenticatedUser",
    "ConnectionAuthenticator",
    "ConversationListBuilder",
    "ConversationStore",
    "ConversationVisibility",
    "DirectMessageRouter",
    "LiveConnection",
    "PresenceRegistry",
    "RoomHub",
    "get_presence_registry",
    "get_room_hub",
    "room_name",
]

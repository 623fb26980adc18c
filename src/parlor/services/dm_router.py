"""Direct message intents: persist first, then deliver to live connections."""

from __future__ import annotations

import logging

from parlor.core.errors import Forbidden, InvalidArgument, NotFound
from parlor.core.settings import Settings, settings
from parlor.models import User
from parlor.schemas import (
    ConversationResponse,
    DirectMessageView,
    ReactionResponse,
)
from parlor.services.authenticator import AuthenticatedUser
from parlor.services.connection import LiveConnection
from parlor.services.conversation_store import ConversationStore
from parlor.services.message_views import build_message_view, build_message_views, to_profile
from parlor.services.presence import PresenceRegistry
from parlor.services.rooms import RoomHub, room_name

logger = logging.getLogger(__name__)

NEW_DM = "new_dm"
REACTION_UPDATE = "reaction_update"
MESSAGE_EDIT = "message_edit"
USER_TYPING = "user_typing"
USER_STOP_TYPING = "user_stop_typing"


class DirectMessageRouter:
    """Validates, persists and routes send / react / edit intents.

    Validation and authorization failures raise before anything is written.
    Delivery happens only after the write committed, and an offline
    recipient is a normal outcome rather than an error.
    """

    def __init__(
        self,
        store: ConversationStore,
        presence: PresenceRegistry,
        rooms: RoomHub,
        config: Settings = settings,
    ) -> None:
        self._store = store
        self._presence = presence
        self._rooms = rooms
        self._config = config

    def _clean_content(self, content: str | None) -> str:
        text = content.strip() if isinstance(content, str) else ""
        if not text:
            raise InvalidArgument("Message content required")
        if len(text) > self._config.max_message_length:
            raise InvalidArgument("Message too long")
        return text

    def _require_counterpart(self, user: AuthenticatedUser, counterpart_id: str) -> User:
        counterpart = self._store.get_user(counterpart_id)
        if counterpart is None:
            raise NotFound("User not found")
        if self._store.is_blocked(counterpart_id, user.id):
            raise Forbidden("Cannot message this user")
        return counterpart

    def history(
        self,
        user: AuthenticatedUser,
        counterpart_id: str,
        limit: int | None = None,
        before: int | None = None,
    ) -> ConversationResponse:
        """Return the newest messages with ``counterpart_id``, oldest first."""
        counterpart = self._require_counterpart(user, counterpart_id)
        page = min(limit or self._config.conversation_page_size, self._config.conversation_page_max)
        messages = self._store.get_conversation(user.id, counterpart_id, page, before)
        return ConversationResponse(
            messages=build_message_views(self._store, messages),
            user=to_profile(counterpart),
        )

    async def send(
        self,
        sender: AuthenticatedUser,
        receiver_id: str,
        content: str | None,
        reply_to_id: str | None = None,
        *,
        origin: LiveConnection | None = None,
    ) -> DirectMessageView:
        text = self._clean_content(content)
        self._require_counterpart(sender, receiver_id)

        # A reply target that is gone or outside this conversation is kept as
        # a bare id; the view carries no snapshot for it.
        message = self._store.create_message(sender.id, receiver_id, text, reply_to_id)
        view = build_message_view(self._store, message)
        logger.info("DM %s sent from %s to %s", message.id, sender.id, receiver_id)

        await self._deliver_new_message(sender.id, receiver_id, view, origin)
        return view

    async def _deliver_new_message(
        self,
        sender_id: str,
        receiver_id: str,
        view: DirectMessageView,
        origin: LiveConnection | None,
    ) -> None:
        payload = view.model_dump(mode="json")
        delivered: set[str] = set()

        direct = self._presence.lookup(receiver_id)
        if direct is not None and direct is not origin:
            if await direct.emit(NEW_DM, payload):
                delivered.add(direct.id)

        delivered |= await self._rooms.broadcast(
            room_name(sender_id, receiver_id),
            NEW_DM,
            payload,
            exclude_user=sender_id,
            skip=delivered,
        )
        if delivered:
            logger.debug("DM %s delivered to %d connection(s)", view.id, len(delivered))
        else:
            logger.debug("DM %s not delivered live: %s is offline", view.id, receiver_id)

    async def react(
        self,
        user: AuthenticatedUser,
        counterpart_id: str,
        message_id: str,
        emoji: str | None,
    ) -> ReactionResponse:
        """Toggle ``emoji`` on a message and push the full aggregate."""
        token = emoji.strip() if isinstance(emoji, str) else ""
        if not token:
            raise InvalidArgument("Emoji required")
        if len(token) > self._config.max_emoji_length:
            raise InvalidArgument("Emoji too long")
        if self._store.get_message_between(message_id, user.id, counterpart_id) is None:
            raise NotFound("Message not found")

        action = self._store.toggle_reaction(message_id, user.id, token)
        aggregate = self._store.reaction_aggregate(message_id)

        await self._notify_counterpart(
            user.id,
            counterpart_id,
            REACTION_UPDATE,
            {
                "messageId": message_id,
                "emoji": token,
                "userId": user.id,
                "username": user.username,
                "action": action,
                "reactions": aggregate,
                "conversationId": user.id,
            },
        )
        return ReactionResponse(reactions=aggregate, action=action)

    async def edit(
        self,
        user: AuthenticatedUser,
        counterpart_id: str,
        message_id: str,
        content: str | None,
    ) -> DirectMessageView:
        """Replace the content of a message the caller sent.

        A message owned by someone else is reported exactly like a missing
        one.
        """
        text = self._clean_content(content)
        message = self._store.get_message_between(message_id, user.id, counterpart_id)
        if message is None or message.sender_id != user.id:
            raise NotFound("Message not found or not authorized")

        message = self._store.update_message_content(message, text)
        view = build_message_view(self._store, message)

        await self._notify_counterpart(
            user.id,
            counterpart_id,
            MESSAGE_EDIT,
            {
                "messageId": message_id,
                "content": view.content,
                "userId": user.id,
                "username": user.username,
                "conversationId": user.id,
                "updated_at": view.updated_at.isoformat() if view.updated_at else None,
            },
        )
        return view

    async def _notify_counterpart(
        self, user_id: str, counterpart_id: str, event: str, payload: dict
    ) -> None:
        # Registry only: no room fallback for reaction and edit notifications.
        if counterpart_id == user_id:
            return
        connection = self._presence.lookup(counterpart_id)
        if connection is None:
            logger.debug("%s not delivered: %s is offline", event, counterpart_id)
            return
        await connection.emit(event, payload)

    async def typing(
        self,
        user: AuthenticatedUser,
        receiver_id: str,
        active: bool,
    ) -> None:
        """Relay an ephemeral typing signal to the pair's room."""
        if active:
            event, payload = USER_TYPING, {"userId": user.id, "username": user.username}
        else:
            event, payload = USER_STOP_TYPING, {"userId": user.id}
        await self._rooms.broadcast(
            room_name(user.id, receiver_id), event, payload, exclude_user=user.id
        )

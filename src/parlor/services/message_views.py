"""Assemble API views of direct messages from stored rows."""

from __future__ import annotations

from collections.abc import Sequence

from parlor.models import DirectMessage, User
from parlor.schemas import DirectMessageView, PublicProfile, ReplySnapshot
from parlor.services.conversation_store import ConversationStore


def to_profile(user: User) -> PublicProfile:
    return PublicProfile(id=user.id, username=user.username, avatar_url=user.avatar_url)


def _same_pair(first: DirectMessage, second: DirectMessage) -> bool:
    return {first.sender_id, first.receiver_id} == {second.sender_id, second.receiver_id}


def build_message_views(
    store: ConversationStore,
    messages: Sequence[DirectMessage],
) -> list[DirectMessageView]:
    """Resolve senders, reply snapshots and reaction aggregates in bulk.

    Reply snapshots are always computed from the current state of the
    referenced message, so an edit to the original is reflected on the next
    read. A snapshot is only attached when the referenced message belongs to
    the same conversation. Messages whose sender no longer resolves are
    skipped.
    """
    reply_ids = {m.reply_to_id for m in messages if m.reply_to_id}
    replies = store.get_messages(reply_ids)
    users = store.get_users(
        [m.sender_id for m in messages] + [r.sender_id for r in replies.values()]
    )
    reactions = store.reactions_for(m.id for m in messages)

    views: list[DirectMessageView] = []
    for message in messages:
        sender = users.get(message.sender_id)
        if sender is None:
            continue
        reply_to = None
        original = replies.get(message.reply_to_id) if message.reply_to_id else None
        if original is not None and _same_pair(original, message):
            original_sender = users.get(original.sender_id)
            reply_to = ReplySnapshot(
                id=original.id,
                content=original.content,
                sender=to_profile(original_sender) if original_sender else None,
            )
        views.append(
            DirectMessageView(
                id=message.id,
                order_index=message.order_index,
                sender_id=message.sender_id,
                receiver_id=message.receiver_id,
                content=message.content,
                created_at=message.created_at,
                updated_at=message.updated_at,
                reply_to_id=message.reply_to_id,
                sender=to_profile(sender),
                reply_to=reply_to,
                reactions=reactions.get(message.id, {}),
            )
        )
    return views


def build_message_view(store: ConversationStore, message: DirectMessage) -> DirectMessageView:
    """Single-message variant of :func:`build_message_views`.

    Raises:
        LookupError: If the sender cannot be resolved.
    """
    views = build_message_views(store, [message])
    if not views:
        raise LookupError(f"Sender of message {message.id} not found")
    return views[0]

"""Persistence operations for direct messages and conversation markers.

Every public mutator runs as one transaction: either all of its rows are
committed or the session is rolled back and :class:`Internal` is raised.
Read-modify-write sequences hold ``WRITE_LOCK`` so they are atomic with
respect to each other even when callers run on worker threads. Database
failures on the read path are reported as :class:`Internal` too.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Literal, TypeVar

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parlor.core.errors import Internal
from parlor.db.time import utcnow
from parlor.models import (
    BlockedUser,
    ConversationEntry,
    DirectMessage,
    HiddenConversation,
    MessageReaction,
    SystemClock,
    User,
)

logger = logging.getLogger(__name__)

WRITE_LOCK = threading.RLock()

ReactionAction = Literal["added", "removed"]

F = TypeVar("F", bound=Callable[..., Any])


def _translate_errors(action: str) -> Callable[[F], F]:
    """Roll back and re-raise database failures of a store method as :class:`Internal`."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: ConversationStore, *args: Any, **kwargs: Any) -> Any:
            try:
                return func(self, *args, **kwargs)
            except SQLAlchemyError as err:
                self._db.rollback()
                logger.error("Failed to %s", action, exc_info=True)
                raise Internal(f"Failed to {action}") from err

        return wrapper  # type: ignore[return-value]

    return decorator


def _pair_filter(user_a: str, user_b: str) -> Any:
    return or_(
        and_(DirectMessage.sender_id == user_a, DirectMessage.receiver_id == user_b),
        and_(DirectMessage.sender_id == user_b, DirectMessage.receiver_id == user_a),
    )


class ConversationStore:
    """CRUD and query helpers over messages, reactions and visibility markers."""

    def __init__(self, db: Session) -> None:
        self._db = db

    @property
    def session(self) -> Session:
        return self._db

    def _commit(self, action: str) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError as err:
            self._db.rollback()
            logger.error("Failed to %s", action, exc_info=True)
            raise Internal(f"Failed to {action}") from err

    # Users

    @_translate_errors("load user")
    def get_user(self, user_id: str) -> User | None:
        return self._db.get(User, user_id)

    @_translate_errors("load users")
    def get_users(self, user_ids: Iterable[str]) -> dict[str, User]:
        """Return the users that exist among ``user_ids``, keyed by id."""
        ids = set(user_ids)
        if not ids:
            return {}
        users = self._db.scalars(select(User).where(User.id.in_(ids))).all()
        return {user.id: user for user in users}

    @_translate_errors("check block list")
    def is_blocked(self, user_id: str, blocked_user_id: str) -> bool:
        """Return True if ``user_id`` has blocked ``blocked_user_id``."""
        stmt = select(BlockedUser.id).where(
            BlockedUser.user_id == user_id,
            BlockedUser.blocked_user_id == blocked_user_id,
        )
        return self._db.scalar(stmt) is not None

    # Messages

    def _next_order_index(self) -> int:
        clock = self._db.scalar(select(SystemClock).with_for_update())
        if clock is None:
            clock = SystemClock(id=1, message_seq=0)
            self._db.add(clock)
        clock.message_seq += 1
        return clock.message_seq

    @_translate_errors("send message")
    def create_message(
        self,
        sender_id: str,
        receiver_id: str,
        content: str,
        reply_to_id: str | None = None,
    ) -> DirectMessage:
        """Persist a message and resurface the conversation for the receiver.

        The receiver's hidden marker for the sender is removed in the same
        transaction as the insert.
        """
        with WRITE_LOCK:
            message = DirectMessage(
                order_index=self._next_order_index(),
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                reply_to_id=reply_to_id,
                created_at=utcnow(),
            )
            self._db.add(message)
            self._db.execute(
                delete(HiddenConversation).where(
                    HiddenConversation.user_id == receiver_id,
                    HiddenConversation.hidden_user_id == sender_id,
                )
            )
            self._commit("send message")
        return message

    @_translate_errors("load message")
    def get_message(self, message_id: str) -> DirectMessage | None:
        return self._db.get(DirectMessage, message_id)

    @_translate_errors("load messages")
    def get_messages(self, message_ids: Iterable[str]) -> dict[str, DirectMessage]:
        ids = set(message_ids)
        if not ids:
            return {}
        rows = self._db.scalars(select(DirectMessage).where(DirectMessage.id.in_(ids))).all()
        return {row.id: row for row in rows}

    @_translate_errors("load message")
    def get_message_between(
        self, message_id: str, user_a: str, user_b: str
    ) -> DirectMessage | None:
        """Return the message only if it belongs to the conversation of the pair."""
        stmt = select(DirectMessage).where(
            DirectMessage.id == message_id,
            _pair_filter(user_a, user_b),
        )
        return self._db.scalar(stmt)

    @_translate_errors("load conversation")
    def get_conversation(
        self,
        user_a: str,
        user_b: str,
        limit: int,
        before: int | None = None,
    ) -> list[DirectMessage]:
        """Return up to ``limit`` newest messages of the pair, oldest first."""
        stmt = select(DirectMessage).where(_pair_filter(user_a, user_b))
        if before is not None:
            stmt = stmt.where(DirectMessage.order_index < before)
        stmt = stmt.order_by(DirectMessage.order_index.desc()).limit(limit)
        messages = list(self._db.scalars(stmt).all())
        messages.reverse()
        return messages

    @_translate_errors("load messages")
    def get_messages_for_user(self, user_id: str) -> Sequence[DirectMessage]:
        """Return every message the user sent or received."""
        stmt = select(DirectMessage).where(
            or_(DirectMessage.sender_id == user_id, DirectMessage.receiver_id == user_id)
        )
        return self._db.scalars(stmt).all()

    @_translate_errors("edit message")
    def update_message_content(self, message: DirectMessage, content: str) -> DirectMessage:
        with WRITE_LOCK:
            message.content = content
            message.updated_at = utcnow()
            self._commit("edit message")
        return message

    @_translate_errors("delete message")
    def delete_message(self, message_id: str) -> bool:
        """Hard-delete a message together with its reactions."""
        with WRITE_LOCK:
            message = self.get_message(message_id)
            if message is None:
                return False
            self._db.execute(
                delete(MessageReaction).where(MessageReaction.message_id == message_id)
            )
            self._db.delete(message)
            self._commit("delete message")
        return True

    # Reactions

    @_translate_errors("update reaction")
    def toggle_reaction(self, message_id: str, user_id: str, emoji: str) -> ReactionAction:
        """Remove the caller's reaction if present, otherwise add it."""
        with WRITE_LOCK:
            existing = self._db.scalar(
                select(MessageReaction).where(
                    MessageReaction.message_id == message_id,
                    MessageReaction.user_id == user_id,
                    MessageReaction.emoji == emoji,
                )
            )
            if existing is not None:
                self._db.delete(existing)
                action: ReactionAction = "removed"
            else:
                self._db.add(
                    MessageReaction(
                        message_id=message_id,
                        user_id=user_id,
                        emoji=emoji,
                        created_at=utcnow(),
                    )
                )
                action = "added"
            self._commit("update reaction")
        return action

    @_translate_errors("load reactions")
    def reactions_for(self, message_ids: Iterable[str]) -> dict[str, dict[str, dict[str, Any]]]:
        """Return ``{message_id: {emoji: {"count", "users"}}}`` for the given messages.

        Messages without reactions map to an empty aggregate.
        """
        ids = list(dict.fromkeys(message_ids))
        aggregates: dict[str, dict[str, dict[str, Any]]] = {mid: {} for mid in ids}
        if not ids:
            return aggregates
        rows = self._db.scalars(
            select(MessageReaction)
            .where(MessageReaction.message_id.in_(ids))
            .order_by(MessageReaction.created_at, MessageReaction.id)
        ).all()
        users_by_emoji: dict[str, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
        for row in rows:
            users_by_emoji[row.message_id][row.emoji].append(row.user_id)
        for message_id, by_emoji in users_by_emoji.items():
            aggregates[message_id] = {
                emoji: {"count": len(users), "users": users}
                for emoji, users in by_emoji.items()
            }
        return aggregates

    def reaction_aggregate(self, message_id: str) -> dict[str, dict[str, Any]]:
        return self.reactions_for([message_id])[message_id]

    # Hidden conversations

    @_translate_errors("load hidden conversations")
    def hidden_user_ids(self, user_id: str) -> set[str]:
        stmt = select(HiddenConversation.hidden_user_id).where(
            HiddenConversation.user_id == user_id
        )
        return set(self._db.scalars(stmt).all())

    def _hidden_marker(self, user_id: str, hidden_user_id: str) -> HiddenConversation | None:
        return self._db.scalar(
            select(HiddenConversation).where(
                HiddenConversation.user_id == user_id,
                HiddenConversation.hidden_user_id == hidden_user_id,
            )
        )

    @_translate_errors("hide conversation")
    def hide(self, user_id: str, hidden_user_id: str) -> bool:
        """Insert a hidden marker; return False if one already existed."""
        with WRITE_LOCK:
            if self._hidden_marker(user_id, hidden_user_id) is not None:
                return False
            self._db.add(
                HiddenConversation(
                    user_id=user_id, hidden_user_id=hidden_user_id, created_at=utcnow()
                )
            )
            self._commit("hide conversation")
        return True

    @_translate_errors("unhide conversation")
    def unhide(self, user_id: str, hidden_user_id: str) -> bool:
        """Delete the hidden marker; return False if there was none."""
        with WRITE_LOCK:
            marker = self._hidden_marker(user_id, hidden_user_id)
            if marker is None:
                return False
            self._db.delete(marker)
            self._commit("unhide conversation")
        return True

    # Conversation entries

    @_translate_errors("load conversations")
    def entries_for(self, user_id: str) -> Sequence[ConversationEntry]:
        stmt = select(ConversationEntry).where(ConversationEntry.user_id == user_id)
        return self._db.scalars(stmt).all()

    @_translate_errors("create conversation")
    def create_entry(self, user_id: str, other_user_id: str) -> bool:
        """Record that ``user_id`` opened a conversation and make it visible.

        Returns False if the entry already existed. The caller's hidden marker
        for ``other_user_id`` is removed either way, in the same transaction.
        """
        with WRITE_LOCK:
            existing = self._db.scalar(
                select(ConversationEntry).where(
                    ConversationEntry.user_id == user_id,
                    ConversationEntry.other_user_id == other_user_id,
                )
            )
            if existing is None:
                self._db.add(
                    ConversationEntry(
                        user_id=user_id, other_user_id=other_user_id, created_at=utcnow()
                    )
                )
            marker = self._hidden_marker(user_id, other_user_id)
            if marker is not None:
                self._db.delete(marker)
            self._commit("create conversation")
        return existing is None

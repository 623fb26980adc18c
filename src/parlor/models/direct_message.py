"""Models describing direct messages between users and their reactions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from parlor.db.session import Base
from parlor.db.time import utcnow

from ._ids import new_id


class DirectMessage(Base):
    """Plain-text message exchanged between two users.

    ``order_index`` is drawn from the system clock inside the inserting
    transaction and is the primary ordering key within a conversation.
    """

    __tablename__ = "direct_message"
    __table_args__ = (
        Index("ix_direct_message_pair", "sender_id", "receiver_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    order_index: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    sender_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id"), nullable=False
    )
    receiver_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Not a foreign key: the referenced message may be gone by read time.
    reply_to_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def counterpart_of(self, user_id: str) -> str:
        """Return the other participant relative to ``user_id``."""
        return self.receiver_id if self.sender_id == user_id else self.sender_id


class MessageReaction(Base):
    """One user's emoji on one message. Toggled, never duplicated."""

    __tablename__ = "message_reaction"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "emoji", name="uq_message_reaction"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    message_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("direct_message.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id"), nullable=False
    )
    emoji: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

"""Per-user conversation visibility markers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from parlor.db.session import Base
from parlor.db.time import utcnow

from ._ids import new_id


class HiddenConversation(Base):
    """``user_id`` hid the conversation with ``hidden_user_id`` from their own list."""

    __tablename__ = "hidden_conversation"
    __table_args__ = (
        UniqueConstraint("user_id", "hidden_user_id", name="uq_hidden_conversation"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    hidden_user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class ConversationEntry(Base):
    """Conversation opened by ``user_id`` before any message was exchanged."""

    __tablename__ = "conversation_entry"
    __table_args__ = (
        UniqueConstraint("user_id", "other_user_id", name="uq_conversation_entry"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    other_user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_account.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

"""Direct message-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .user import PublicProfile


class DirectMessageCreate(BaseModel):
    """Schema for sending a new direct message."""

    content: str = Field(..., description="Message text; trimmed before storage")
    reply_to_id: str | None = Field(None, description="Id of the message being replied to")


class DirectMessageEdit(BaseModel):
    """Schema for replacing the content of an existing message."""

    content: str


class ReactionToggle(BaseModel):
    """Schema for adding or removing a reaction."""

    emoji: str


class ReactionSummary(BaseModel):
    """Aggregate for one emoji on one message."""

    count: int
    users: list[str]


ReactionAggregate = dict[str, ReactionSummary]


class ReplySnapshot(BaseModel):
    """Denormalized view of the message being replied to."""

    id: str
    content: str
    sender: PublicProfile | None = None


class DirectMessageView(BaseModel):
    """Direct message as returned by the API and delivered live."""

    id: str
    order_index: int
    sender_id: str
    receiver_id: str
    content: str
    created_at: datetime
    updated_at: datetime | None = None
    reply_to_id: str | None = None
    sender: PublicProfile | None = None
    reply_to: ReplySnapshot | None = None
    reactions: ReactionAggregate = Field(default_factory=dict)

    model_config = ConfigDict(from_attributes=True)


class MessageEnvelope(BaseModel):
    message: DirectMessageView


class ConversationResponse(BaseModel):
    """Messages exchanged with one counterpart, oldest first."""

    messages: list[DirectMessageView]
    user: PublicProfile


class ReactionResponse(BaseModel):
    reactions: ReactionAggregate
    action: Literal["added", "removed"]

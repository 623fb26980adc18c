"""Payload schemas for the real-time event surface.

Inbound frames are JSON objects ``{"event": <name>, "data": <payload>}``.
Field names on this surface are camelCase.
"""

from pydantic import BaseModel, ConfigDict, Field


class _Intent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class InboundFrame(BaseModel):
    event: str
    data: dict | str | None = None


class ConversationTarget(_Intent):
    """Payload of ``join_conversation`` / ``leave_conversation``."""

    counterpart_id: str = Field(alias="counterpartId")


class SendDirectMessage(_Intent):
    receiver_id: str = Field(alias="receiverId")
    content: str
    reply_to_id: str | None = Field(default=None, alias="replyToId")


class ReactDirectMessage(_Intent):
    counterpart_id: str = Field(alias="counterpartId")
    message_id: str = Field(alias="messageId")
    emoji: str


class EditDirectMessage(_Intent):
    counterpart_id: str = Field(alias="counterpartId")
    message_id: str = Field(alias="messageId")
    content: str


class TypingSignal(_Intent):
    receiver_id: str = Field(alias="receiverId")

"""Conversation list schemas."""

from pydantic import BaseModel, ConfigDict, Field

from .direct_message import DirectMessageView
from .user import PublicProfile


class ConversationSummary(BaseModel):
    """One row of a user's conversation list.

    ``placeholder`` is set when the conversation was opened without any
    message; ``last_message`` then carries the configured placeholder text.
    """

    other_user: PublicProfile
    last_message: DirectMessageView = Field(alias="lastMessage")
    has_unread: bool = Field(default=False, alias="hasUnread")
    placeholder: bool = False

    model_config = ConfigDict(populate_by_name=True)


class ConversationListResponse(BaseModel):
    conversations: list[ConversationSummary]


class StatusMessage(BaseModel):
    message: str

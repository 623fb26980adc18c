"""Direct message endpoints for the Parlor API."""

from __future__ import annotations

from fastapi import APIRouter, Query

from parlor.api.v1.dependencies import (
    CurrentUserDep,
    DirectMessageRouterDep,
    ListBuilderDep,
    VisibilityDep,
)
from parlor.schemas import (
    ConversationListResponse,
    ConversationResponse,
    DirectMessageCreate,
    DirectMessageEdit,
    MessageEnvelope,
    ReactionResponse,
    ReactionToggle,
    StatusMessage,
)

router = APIRouter(prefix="/dm", tags=["direct-messages"])


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations(
    current_user: CurrentUserDep,
    builder: ListBuilderDep,
) -> ConversationListResponse:
    """List the caller's conversations, most recent first."""
    return ConversationListResponse(conversations=builder.build(current_user.id))


@router.post("/conversations/{counterpart_id}/create", response_model=StatusMessage)
async def create_conversation(
    counterpart_id: str,
    current_user: CurrentUserDep,
    visibility: VisibilityDep,
) -> StatusMessage:
    """Open a conversation so it is listed before any message is sent."""
    visibility.create_entry(current_user.id, counterpart_id)
    return StatusMessage(message="Conversation created")


@router.post("/conversations/{counterpart_id}/hide", response_model=StatusMessage)
async def hide_conversation(
    counterpart_id: str,
    current_user: CurrentUserDep,
    visibility: VisibilityDep,
) -> StatusMessage:
    visibility.hide(current_user.id, counterpart_id)
    return StatusMessage(message="Conversation hidden")


@router.post("/conversations/{counterpart_id}/unhide", response_model=StatusMessage)
async def unhide_conversation(
    counterpart_id: str,
    current_user: CurrentUserDep,
    visibility: VisibilityDep,
) -> StatusMessage:
    visibility.unhide(current_user.id, counterpart_id)
    return StatusMessage(message="Conversation unhidden")


@router.get("/{counterpart_id}", response_model=ConversationResponse)
async def get_conversation(
    counterpart_id: str,
    current_user: CurrentUserDep,
    dm_router: DirectMessageRouterDep,
    limit: int | None = Query(None, ge=1),
    before: int | None = Query(None),
) -> ConversationResponse:
    """Return messages exchanged with ``counterpart_id``, oldest first."""
    return dm_router.history(current_user, counterpart_id, limit=limit, before=before)


@router.post("/{counterpart_id}", response_model=MessageEnvelope)
async def send_message(
    counterpart_id: str,
    payload: DirectMessageCreate,
    current_user: CurrentUserDep,
    dm_router: DirectMessageRouterDep,
) -> MessageEnvelope:
    """Send a direct message and deliver it to the recipient if online."""
    message = await dm_router.send(
        current_user, counterpart_id, payload.content, payload.reply_to_id
    )
    return MessageEnvelope(message=message)


@router.patch("/{counterpart_id}/messages/{message_id}", response_model=MessageEnvelope)
async def edit_message(
    counterpart_id: str,
    message_id: str,
    payload: DirectMessageEdit,
    current_user: CurrentUserDep,
    dm_router: DirectMessageRouterDep,
) -> MessageEnvelope:
    message = await dm_router.edit(current_user, counterpart_id, message_id, payload.content)
    return MessageEnvelope(message=message)


@router.post("/{counterpart_id}/reactions/{message_id}", response_model=ReactionResponse)
async def toggle_reaction(
    counterpart_id: str,
    message_id: str,
    payload: ReactionToggle,
    current_user: CurrentUserDep,
    dm_router: DirectMessageRouterDep,
) -> ReactionResponse:
    """Add the caller's reaction, or remove it if already present."""
    return await dm_router.react(current_user, counterpart_id, message_id, payload.emoji)

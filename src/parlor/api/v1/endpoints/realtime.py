"""Real-time event endpoint.

A client connects to ``/ws`` with its bearer credential, either as the
``token`` query parameter or an ``Authorization`` header, and then exchanges
``{"event": ..., "data": ...}`` JSON frames. Every intent opens its own
database session so a long-lived socket never pins a transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from contextlib import AbstractContextManager
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from parlor.api.v1.dependencies import PresenceDep, RoomHubDep
from parlor.core.errors import ChatError, InvalidArgument, Unauthenticated
from parlor.db.session import get_session_scope
from parlor.schemas.realtime import (
    ConversationTarget,
    EditDirectMessage,
    InboundFrame,
    ReactDirectMessage,
    SendDirectMessage,
    TypingSignal,
)
from parlor.services import (
    AuthenticatedUser,
    ConnectionAuthenticator,
    ConversationStore,
    DirectMessageRouter,
    LiveConnection,
    PresenceRegistry,
    RoomHub,
    room_name,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

SessionScope = Callable[[], AbstractContextManager[Session]]
SessionScopeDep = Annotated[SessionScope, Depends(get_session_scope)]


class RealtimeSession:
    """Dispatches the intents of one authenticated connection."""

    def __init__(
        self,
        connection: LiveConnection,
        user: AuthenticatedUser,
        presence: PresenceRegistry,
        rooms: RoomHub,
        session_scope: SessionScope,
    ) -> None:
        self.connection = connection
        self.user = user
        self._presence = presence
        self._rooms = rooms
        self._session_scope = session_scope
        self._handlers: dict[str, Callable[[Any], Awaitable[None]]] = {
            "join_conversation": self._join_conversation,
            "leave_conversation": self._leave_conversation,
            "send_dm": self._send_dm,
            "react_dm": self._react_dm,
            "edit_dm": self._edit_dm,
            "typing_start": self._typing_start,
            "typing_stop": self._typing_stop,
        }

    def _router(self, db: Session) -> DirectMessageRouter:
        return DirectMessageRouter(ConversationStore(db), self._presence, self._rooms)

    async def handle_message(self, message: Mapping[str, Any]) -> None:
        """Run one received ASGI message; binary frames are rejected."""
        text = message.get("text")
        if text is None:
            await self._reject(None, InvalidArgument("Frames must be JSON text"))
            return
        await self.handle_text(text)

    async def handle_text(self, raw: str) -> None:
        """Parse one inbound frame and run its intent.

        Rejected intents are answered with an ``error`` event; the
        connection stays open.
        """
        event = None
        try:
            frame = InboundFrame.model_validate_json(raw)
            event = frame.event
            handler = self._handlers.get(frame.event)
            if handler is None:
                raise InvalidArgument(f"Unknown event: {frame.event}")
            await handler(frame.data)
        except ValidationError as exc:
            await self._reject(event, InvalidArgument(_describe(exc)))
        except ChatError as exc:
            await self._reject(event, exc)

    async def _reject(self, event: str | None, error: ChatError) -> None:
        logger.warning(
            "Rejected %s from user %s: %s", event or "frame", self.user.id, error.message
        )
        await self.connection.emit(
            "error", {"event": event, "error": error.message, "code": error.code}
        )

    async def _join_conversation(self, data: Any) -> None:
        target = _target(data)
        room = room_name(self.user.id, target.counterpart_id)
        self._rooms.join(room, self.connection)
        logger.info("User %s joined %s", self.user.id, room)
        await self.connection.emit(
            "conversation_joined", {"counterpartId": target.counterpart_id, "room": room}
        )

    async def _leave_conversation(self, data: Any) -> None:
        target = _target(data)
        room = room_name(self.user.id, target.counterpart_id)
        self._rooms.leave(room, self.connection)
        await self.connection.emit(
            "conversation_left", {"counterpartId": target.counterpart_id, "room": room}
        )

    async def _send_dm(self, data: Any) -> None:
        intent = SendDirectMessage.model_validate(data)
        with self._session_scope() as db:
            view = await self._router(db).send(
                self.user,
                intent.receiver_id,
                intent.content,
                intent.reply_to_id,
                origin=self.connection,
            )
        await self.connection.emit("dm_sent", view.model_dump(mode="json"))

    async def _react_dm(self, data: Any) -> None:
        intent = ReactDirectMessage.model_validate(data)
        with self._session_scope() as db:
            result = await self._router(db).react(
                self.user, intent.counterpart_id, intent.message_id, intent.emoji
            )
        await self.connection.emit(
            "reaction_result",
            {"messageId": intent.message_id, **result.model_dump(mode="json")},
        )

    async def _edit_dm(self, data: Any) -> None:
        intent = EditDirectMessage.model_validate(data)
        with self._session_scope() as db:
            view = await self._router(db).edit(
                self.user, intent.counterpart_id, intent.message_id, intent.content
            )
        await self.connection.emit("dm_edited", view.model_dump(mode="json"))

    async def _typing_start(self, data: Any) -> None:
        await self._typing(data, active=True)

    async def _typing_stop(self, data: Any) -> None:
        await self._typing(data, active=False)

    async def _typing(self, data: Any, *, active: bool) -> None:
        signal = TypingSignal.model_validate(data)
        with self._session_scope() as db:
            await self._router(db).typing(self.user, signal.receiver_id, active)


def _target(data: Any) -> ConversationTarget:
    # join/leave accept either a bare counterpart id or {"counterpartId": ...}
    if isinstance(data, str):
        return ConversationTarget(counterpart_id=data)
    return ConversationTarget.model_validate(data)


def _describe(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "payload"
    return f"Invalid {location}: {first.get('msg', 'invalid value')}"


@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    presence: PresenceDep,
    rooms: RoomHubDep,
    session_scope: SessionScopeDep,
    token: str | None = Query(None),
) -> None:
    """Authenticate once, register presence, then serve intents until disconnect."""
    credential = token or websocket.headers.get("authorization")
    try:
        with session_scope() as db:
            user = ConnectionAuthenticator(db).authenticate(credential)
    except Unauthenticated as exc:
        logger.warning("Rejected real-time handshake: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
        return

    await websocket.accept()
    connection = LiveConnection(websocket, user.id, user.username)
    presence.register(user.id, connection)
    logger.info("User %s connected (%s)", user.username, connection.id)

    session = RealtimeSession(connection, user, presence, rooms, session_scope)
    await connection.emit(
        "connected",
        {"connectionId": connection.id, "user": {"id": user.id, "username": user.username}},
    )
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(
                    message.get("code", status.WS_1000_NORMAL_CLOSURE), message.get("reason")
                )
            await session.handle_message(message)
    except WebSocketDisconnect as exc:
        logger.info("User %s disconnected (%s): code %s", user.username, connection.id, exc.code)
    finally:
        rooms.leave_all(connection)
        presence.unregister(user.id, connection)

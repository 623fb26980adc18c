"""Live connection handle wrapping a WebSocket."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Protocol

from fastapi import WebSocketDisconnect

logger = logging.getLogger(__name__)


class JsonSocket(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class LiveConnection:
    """One authenticated socket. Identity is fixed at handshake time."""

    def __init__(self, socket: JsonSocket, user_id: str, username: str) -> None:
        self.id = uuid.uuid4().hex
        self.user_id = user_id
        self.username = username
        self._socket = socket

    def __repr__(self) -> str:
        return f"LiveConnection(id={self.id!r}, user_id={self.user_id!r})"

    async def emit(self, event: str, data: Any) -> bool:
        """Send one event frame; return False if the socket is already gone.

        A closed socket is an expected outcome of best-effort delivery and is
        not raised to the caller.
        """
        try:
            await self._socket.send_json({"event": event, "data": data})
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            logger.debug("Dropped %s for connection %s: %s", event, self.id, exc)
            return False
        return True

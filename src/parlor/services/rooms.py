"""Deterministic two-party rooms and their connection membership."""

from __future__ import annotations

import logging
import threading
from collections.abc import Collection
from typing import Any

from parlor.services.connection import LiveConnection

logger = logging.getLogger(__name__)

ROOM_PREFIX = "dm_"


def room_name(user_a: str, user_b: str) -> str:
    """Return the room shared by two users, independent of argument order."""
    first, second = sorted((user_a, user_b))
    return f"{ROOM_PREFIX}{first}_{second}"


class RoomHub:
    """Tracks which connections joined which conversation rooms.

    Joining is explicit; nothing joins a room automatically.
    """

    def __init__(self) -> None:
        self._members: dict[str, dict[str, LiveConnection]] = {}
        self._lock = threading.Lock()

    def join(self, room: str, connection: LiveConnection) -> None:
        with self._lock:
            self._members.setdefault(room, {})[connection.id] = connection

    def leave(self, room: str, connection: LiveConnection) -> None:
        with self._lock:
            members = self._members.get(room)
            if members is None:
                return
            members.pop(connection.id, None)
            if not members:
                del self._members[room]

    def leave_all(self, connection: LiveConnection) -> None:
        """Drop ``connection`` from every room, used on disconnect."""
        with self._lock:
            for room in list(self._members):
                members = self._members[room]
                members.pop(connection.id, None)
                if not members:
                    del self._members[room]

    def members(self, room: str) -> list[LiveConnection]:
        with self._lock:
            return list(self._members.get(room, {}).values())

    def rooms_of(self, connection: LiveConnection) -> set[str]:
        with self._lock:
            return {room for room, members in self._members.items() if connection.id in members}

    async def broadcast(
        self,
        room: str,
        event: str,
        data: Any,
        *,
        exclude_user: str | None = None,
        skip: Collection[str] = (),
    ) -> set[str]:
        """Emit to every member of ``room``.

        Args:
            exclude_user: Members belonging to this user are not sent to.
            skip: Connection ids that already received this event.

        Returns:
            Ids of connections the event was delivered to.
        """
        delivered: set[str] = set()
        for connection in self.members(room):
            if connection.user_id == exclude_user or connection.id in skip:
                continue
            if await connection.emit(event, data):
                delivered.add(connection.id)
        return delivered

    def clear(self) -> None:
        with self._lock:
            self._members.clear()


_hub = RoomHub()


def get_room_hub() -> RoomHub:
    """Return the process-wide room hub."""
    return _hub

"""In-memory mapping from user identity to its live connection."""

from __future__ import annotations

import logging
import threading

from parlor.services.connection import LiveConnection

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """Last-connected-wins registry of one live connection per user.

    A second connection for the same user replaces the first; the old
    connection is not evicted and stays responsible for closing itself.
    """

    def __init__(self) -> None:
        self._connections: dict[str, LiveConnection] = {}
        self._lock = threading.Lock()

    def register(self, user_id: str, connection: LiveConnection) -> None:
        with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = connection
        if previous is not None and previous is not connection:
            logger.info(
                "Connection %s replaced %s for user %s", connection.id, previous.id, user_id
            )

    def unregister(self, user_id: str, connection: LiveConnection) -> bool:
        """Remove the entry only if it still points at ``connection``.

        Returns:
            True if the entry was removed; False if a newer connection owns it.
        """
        with self._lock:
            if self._connections.get(user_id) is not connection:
                return False
            del self._connections[user_id]
        return True

    def lookup(self, user_id: str) -> LiveConnection | None:
        with self._lock:
            return self._connections.get(user_id)

    def is_online(self, user_id: str) -> bool:
        return self.lookup(user_id) is not None

    def clear(self) -> None:
        with self._lock:
            self._connections.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


_registry = PresenceRegistry()


def get_presence_registry() -> PresenceRegistry:
    """Return the process-wide presence registry."""
    return _registry

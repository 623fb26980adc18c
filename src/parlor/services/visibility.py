"""Hide, unhide and open conversations in the caller's own list."""

from __future__ import annotations

import logging

from parlor.core.errors import NotFound
from parlor.services.conversation_store import ConversationStore

logger = logging.getLogger(__name__)


class ConversationVisibility:
    """Unidirectional visibility markers; the counterpart's view never changes."""

    def __init__(self, store: ConversationStore) -> None:
        self._store = store

    def _require_user(self, user_id: str) -> None:
        if self._store.get_user(user_id) is None:
            raise NotFound("User not found")

    def hide(self, user_id: str, counterpart_id: str) -> bool:
        self._require_user(counterpart_id)
        created = self._store.hide(user_id, counterpart_id)
        logger.debug("User %s hid conversation with %s (new=%s)", user_id, counterpart_id, created)
        return created

    def unhide(self, user_id: str, counterpart_id: str) -> bool:
        return self._store.unhide(user_id, counterpart_id)

    def create_entry(self, user_id: str, counterpart_id: str) -> bool:
        """Open a conversation so it is listed before any message exists."""
        self._require_user(counterpart_id)
        return self._store.create_entry(user_id, counterpart_id)

"""Reconcile messages, conversation entries and hidden markers into one list."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from parlor.core.settings import Settings, settings
from parlor.models import ConversationEntry, DirectMessage
from parlor.schemas import ConversationSummary, DirectMessageView
from parlor.services.conversation_store import ConversationStore
from parlor.services.message_views import build_message_views, to_profile


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


@dataclass
class _Candidate:
    counterpart_id: str
    sort_key: tuple[datetime, int]
    message: DirectMessage | None = None
    entry: ConversationEntry | None = None


class ConversationListBuilder:
    """Read-only builder of a user's conversation summaries.

    One summary per counterpart, newest first. A counterpart with at least
    one message is summarized by its latest message; a counterpart known
    only through a conversation entry gets a placeholder summary; hidden
    counterparts and counterparts that no longer resolve are left out.
    """

    def __init__(self, store: ConversationStore, config: Settings = settings) -> None:
        self._store = store
        self._config = config

    def build(self, user_id: str) -> list[ConversationSummary]:
        hidden = self._store.hidden_user_ids(user_id)

        candidates: dict[str, _Candidate] = {}
        for message in self._store.get_messages_for_user(user_id):
            counterpart_id = message.counterpart_of(user_id)
            if counterpart_id in hidden:
                continue
            key = (_as_utc(message.created_at), message.order_index)
            current = candidates.get(counterpart_id)
            if current is None or key > current.sort_key:
                candidates[counterpart_id] = _Candidate(counterpart_id, key, message=message)

        for entry in self._store.entries_for(user_id):
            if entry.other_user_id in hidden or entry.other_user_id in candidates:
                continue
            candidates[entry.other_user_id] = _Candidate(
                entry.other_user_id, (_as_utc(entry.created_at), 0), entry=entry
            )

        profiles = self._store.get_users(candidates)
        live = [c for c in candidates.values() if c.counterpart_id in profiles]

        views = {
            view.id: view
            for view in build_message_views(
                self._store, [c.message for c in live if c.message is not None]
            )
        }

        summaries: list[tuple[tuple[datetime, int], ConversationSummary]] = []
        for candidate in live:
            if candidate.message is not None:
                view = views.get(candidate.message.id)
                if view is None:
                    continue
                placeholder = False
            elif candidate.entry is not None:
                view = self._placeholder_view(user_id, candidate.entry)
                placeholder = True
            else:
                continue
            summaries.append(
                (
                    candidate.sort_key,
                    ConversationSummary(
                        other_user=to_profile(profiles[candidate.counterpart_id]),
                        last_message=view,
                        has_unread=False,
                        placeholder=placeholder,
                    ),
                )
            )

        summaries.sort(key=lambda item: item[0], reverse=True)
        return [summary for _, summary in summaries]

    def _placeholder_view(self, user_id: str, entry: ConversationEntry) -> DirectMessageView:
        return DirectMessageView(
            id=entry.id,
            order_index=0,
            sender_id=user_id,
            receiver_id=entry.other_user_id,
            content=self._config.conversation_placeholder,
            created_at=_as_utc(entry.created_at),
        )

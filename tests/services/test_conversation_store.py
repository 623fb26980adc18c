# tests/services/test_conversation_store.py
"""Tests for the persistence operations behind direct messaging."""

from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from parlor.core.errors import Internal
from parlor.models import DirectMessage, HiddenConversation, MessageReaction


def test_create_message_assigns_increasing_order_index(store, alice, bob) -> None:
    first = store.create_message(alice.id, bob.id, "one")
    second = store.create_message(bob.id, alice.id, "two")

    assert second.order_index == first.order_index + 1
    assert first.updated_at is None


def test_create_message_resurfaces_conversation_for_receiver(store, alice, bob) -> None:
    store.hide(bob.id, alice.id)
    store.hide(alice.id, bob.id)

    store.create_message(alice.id, bob.id, "ping")

    assert alice.id not in store.hidden_user_ids(bob.id)
    # the sender's own marker is untouched
    assert bob.id in store.hidden_user_ids(alice.id)


def test_get_conversation_is_oldest_first_and_paged(store, alice, bob, carol) -> None:
    sent = [store.create_message(alice.id, bob.id, f"m{i}") for i in range(5)]
    store.create_message(alice.id, carol.id, "elsewhere")

    page = store.get_conversation(bob.id, alice.id, limit=3)
    assert [m.content for m in page] == ["m2", "m3", "m4"]

    older = store.get_conversation(alice.id, bob.id, limit=3, before=sent[2].order_index)
    assert [m.content for m in older] == ["m0", "m1"]


def test_get_message_between_checks_participants(store, alice, bob, carol) -> None:
    message = store.create_message(alice.id, bob.id, "hi")

    assert store.get_message_between(message.id, bob.id, alice.id) is message
    assert store.get_message_between(message.id, alice.id, carol.id) is None
    assert store.get_message_between("missing", alice.id, bob.id) is None


def test_toggle_reaction_adds_then_removes(store, db_session, alice, bob) -> None:
    message = store.create_message(alice.id, bob.id, "hi")

    assert store.toggle_reaction(message.id, bob.id, "👍") == "added"
    assert store.reaction_aggregate(message.id) == {"👍": {"count": 1, "users": [bob.id]}}

    assert store.toggle_reaction(message.id, bob.id, "👍") == "removed"
    assert store.reaction_aggregate(message.id) == {}
    rows = db_session.scalars(select(MessageReaction)).all()
    assert rows == []


def test_reactions_for_groups_by_message_and_emoji(store, alice, bob) -> None:
    m1 = store.create_message(alice.id, bob.id, "one")
    m2 = store.create_message(alice.id, bob.id, "two")
    store.toggle_reaction(m1.id, alice.id, "🔥")
    store.toggle_reaction(m1.id, bob.id, "🔥")
    store.toggle_reaction(m1.id, bob.id, "😂")

    aggregates = store.reactions_for([m1.id, m2.id])

    assert aggregates[m2.id] == {}
    assert aggregates[m1.id]["🔥"]["count"] == 2
    assert set(aggregates[m1.id]["🔥"]["users"]) == {alice.id, bob.id}
    assert aggregates[m1.id]["😂"] == {"count": 1, "users": [bob.id]}


def test_update_message_content_sets_updated_at(store, alice, bob) -> None:
    message = store.create_message(alice.id, bob.id, "draft")

    store.update_message_content(message, "final")

    assert message.content == "final"
    assert message.updated_at is not None


def test_delete_message_cascades_reactions(store, db_session, alice, bob) -> None:
    message = store.create_message(alice.id, bob.id, "bye")
    store.toggle_reaction(message.id, bob.id, "👋")

    assert store.delete_message(message.id) is True
    assert store.delete_message(message.id) is False
    assert db_session.get(DirectMessage, message.id) is None
    assert db_session.scalars(select(MessageReaction)).all() == []


def test_hide_and_unhide_are_idempotent(store, db_session, alice, bob) -> None:
    assert store.hide(alice.id, bob.id) is True
    assert store.hide(alice.id, bob.id) is False
    markers = db_session.scalars(select(HiddenConversation)).all()
    assert len(markers) == 1

    assert store.unhide(alice.id, bob.id) is True
    assert store.unhide(alice.id, bob.id) is False
    assert store.hidden_user_ids(alice.id) == set()


def test_hidden_marker_is_unidirectional(store, alice, bob) -> None:
    store.hide(alice.id, bob.id)

    assert store.hidden_user_ids(alice.id) == {bob.id}
    assert store.hidden_user_ids(bob.id) == set()


def test_create_entry_is_unique_and_unhides(store, alice, bob) -> None:
    store.hide(alice.id, bob.id)

    assert store.create_entry(alice.id, bob.id) is True
    assert store.create_entry(alice.id, bob.id) is False

    assert [e.other_user_id for e in store.entries_for(alice.id)] == [bob.id]
    assert store.entries_for(bob.id) == []
    assert store.hidden_user_ids(alice.id) == set()


def test_is_blocked_is_directional(store, block, alice, bob) -> None:
    block(bob, alice)

    assert store.is_blocked(bob.id, alice.id) is True
    assert store.is_blocked(alice.id, bob.id) is False


def test_commit_failure_rolls_back_and_raises_internal(store, db_session, alice, bob) -> None:
    alice_id, bob_id = alice.id, bob.id
    with patch.object(
        db_session, "commit", side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
    ):
        with pytest.raises(Internal):
            store.create_message(alice_id, bob_id, "lost")

    assert store.get_conversation(alice_id, bob_id, limit=10) == []


def test_read_failure_raises_internal(store, db_session, alice, bob) -> None:
    alice_id, bob_id = alice.id, bob.id
    with patch.object(
        db_session, "scalars", side_effect=OperationalError("SELECT", {}, Exception("database is locked"))
    ):
        with pytest.raises(Internal) as exc_info:
            store.get_conversation(alice_id, bob_id, limit=10)

    assert exc_info.value.message == "Failed to load conversation"
    assert store.get_conversation(alice_id, bob_id, limit=10) == []

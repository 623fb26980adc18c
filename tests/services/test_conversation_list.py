# tests/services/test_conversation_list.py
"""Tests for conversation list reconciliation."""

from datetime import timedelta

import pytest

from parlor.core.settings import settings
from parlor.models import ConversationEntry
from parlor.services import ConversationListBuilder, ConversationVisibility


@pytest.fixture()
def builder(store) -> ConversationListBuilder:
    return ConversationListBuilder(store)


def _counterparts(summaries) -> list[str]:
    return [summary.other_user.id for summary in summaries]


def test_empty_list(builder, alice) -> None:
    assert builder.build(alice.id) == []


def test_one_summary_per_counterpart_with_latest_message(builder, store, alice, bob) -> None:
    store.create_message(alice.id, bob.id, "Hi Bob")
    store.create_message(bob.id, alice.id, "Hi Alice")

    for user, other in ((alice, bob), (bob, alice)):
        summaries = builder.build(user.id)
        assert len(summaries) == 1
        summary = summaries[0]
        assert summary.other_user.id == other.id
        assert summary.last_message.content == "Hi Alice"
        assert summary.has_unread is False
        assert summary.placeholder is False


def test_latest_message_breaks_timestamp_ties_by_order(builder, store, alice, bob) -> None:
    first = store.create_message(alice.id, bob.id, "first")
    second = store.create_message(alice.id, bob.id, "second")
    second.created_at = first.created_at
    store.session.flush()

    assert builder.build(alice.id)[0].last_message.id == second.id


def test_summaries_sorted_newest_first(builder, store, alice, bob, carol) -> None:
    store.create_message(alice.id, bob.id, "to bob")
    store.create_message(carol.id, alice.id, "from carol")

    assert _counterparts(builder.build(alice.id)) == [carol.id, bob.id]

    store.create_message(alice.id, bob.id, "bob again")

    assert _counterparts(builder.build(alice.id)) == [bob.id, carol.id]


def test_hidden_counterpart_excluded_only_for_hider(builder, store, alice, bob, carol) -> None:
    store.create_message(alice.id, bob.id, "to bob")
    store.create_message(alice.id, carol.id, "to carol")
    store.hide(alice.id, bob.id)

    assert _counterparts(builder.build(alice.id)) == [carol.id]
    assert _counterparts(builder.build(bob.id)) == [alice.id]


def test_new_message_resurfaces_hidden_conversation(builder, store, alice, bob) -> None:
    store.create_message(alice.id, bob.id, "hello")
    store.hide(bob.id, alice.id)
    assert builder.build(bob.id) == []

    store.create_message(alice.id, bob.id, "are you there?")

    summaries = builder.build(bob.id)
    assert _counterparts(summaries) == [alice.id]
    assert summaries[0].last_message.content == "are you there?"


def test_own_message_does_not_resurface_for_sender(builder, store, alice, bob) -> None:
    store.create_message(alice.id, bob.id, "hello")
    store.hide(alice.id, bob.id)

    store.create_message(alice.id, bob.id, "still hidden for me")

    assert builder.build(alice.id) == []


def test_entry_without_messages_yields_placeholder(builder, alice, bob, store) -> None:
    ConversationVisibility(store).create_entry(alice.id, bob.id)

    summaries = builder.build(alice.id)

    assert len(summaries) == 1
    summary = summaries[0]
    assert summary.placeholder is True
    assert summary.other_user.id == bob.id
    assert summary.last_message.content == settings.conversation_placeholder
    assert summary.last_message.sender_id == alice.id
    assert summary.last_message.receiver_id == bob.id
    assert summary.last_message.id == store.entries_for(alice.id)[0].id
    # The entry belongs to the opener only.
    assert builder.build(bob.id) == []


def test_message_takes_precedence_over_entry(builder, store, alice, bob) -> None:
    store.create_entry(alice.id, bob.id)
    store.create_message(bob.id, alice.id, "real message")

    summaries = builder.build(alice.id)

    assert len(summaries) == 1
    assert summaries[0].placeholder is False
    assert summaries[0].last_message.content == "real message"


def test_entry_ordered_by_its_creation_time(builder, store, db_session, alice, bob, carol) -> None:
    message = store.create_message(alice.id, bob.id, "older")
    store.create_entry(alice.id, carol.id)
    entry = db_session.query(ConversationEntry).filter_by(user_id=alice.id).one()
    entry.created_at = message.created_at - timedelta(minutes=5)
    db_session.flush()

    assert _counterparts(builder.build(alice.id)) == [bob.id, carol.id]

    entry.created_at = message.created_at + timedelta(minutes=5)
    db_session.flush()

    assert _counterparts(builder.build(alice.id)) == [carol.id, bob.id]


def test_hidden_entry_excluded(builder, store, alice, bob) -> None:
    store.create_entry(alice.id, bob.id)
    store.hide(alice.id, bob.id)

    assert builder.build(alice.id) == []


def test_unresolvable_counterpart_dropped(builder, store, db_session, alice, bob, carol) -> None:
    store.create_message(alice.id, bob.id, "to bob")
    store.create_message(alice.id, carol.id, "to carol")
    db_session.delete(carol)
    db_session.flush()

    assert _counterparts(builder.build(alice.id)) == [bob.id]


def test_build_is_read_only(builder, store, alice, bob) -> None:
    store.create_message(alice.id, bob.id, "hello")
    store.create_entry(bob.id, alice.id)

    first = builder.build(alice.id)
    second = builder.build(alice.id)

    assert [s.model_dump() for s in first] == [s.model_dump() for s in second]
    assert len(store.entries_for(bob.id)) == 1
    assert store.hidden_user_ids(alice.id) == set()


def test_summary_serializes_with_camel_case_keys(builder, store, alice, bob) -> None:
    store.create_message(alice.id, bob.id, "hello")

    payload = builder.build(alice.id)[0].model_dump(by_alias=True)

    assert {"other_user", "lastMessage", "hasUnread", "placeholder"} <= payload.keys()

"""
tests/test_consent_gate.py — Consent Gate & Messaging Tests
=============================================================
Messages are stored only with an accepted contact request and the
receiver's DM toggle on; moderation flags but never blocks.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from heartline.engine.consent import can_message as consent_rule
from heartline.engine.roles import PrivacyPolicy
from heartline.errors import DependencyUnavailable, ValidationError
from heartline.services import message_service, request_service
from heartline.services.collaborators import ModerationProvider, NullModerator
from heartline.services.member_service import update_policy

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def connect(db_engine, emitter):
    """Open an accepted contact channel from *sender* to *receiver*."""
    def _connect(sender, receiver):
        request_id = request_service.create_request(
            db_engine,
            sender_id=sender,
            receiver_id=receiver,
            kind="contact",
            message="Hi",
            emitter=emitter,
        )
        request_service.transition_request(
            db_engine,
            request_id=request_id,
            actor_id=receiver,
            new_status="accepted",
            emitter=emitter,
        )
        return request_id
    return _connect


@pytest.fixture
def send(db_engine, emitter):
    def _send(sender, receiver, content="Good morning", *, moderator=None, now=None):
        return message_service.submit_message(
            db_engine,
            sender_id=sender,
            receiver_id=receiver,
            content=content,
            moderator=moderator or NullModerator(),
            emitter=emitter,
            now=now,
        )
    return _send


class TestConsentRule:
    @pytest.mark.parametrize(
        "accepted, dms, expected",
        [(True, True, True), (True, False, False), (False, True, False), (False, False, False)],
    )
    def test_truth_table(self, accepted, dms, expected):
        policy = PrivacyPolicy(allow_direct_messages=dms)
        assert consent_rule(accepted_contact_exists=accepted, receiver_policy=policy) is expected


class TestSubmitMessage:
    def test_closed_by_default(self, db_engine, make_member, send, buffer):
        make_member("alice")
        make_member("bob")
        outcome = send("alice", "bob")
        assert outcome.stored is False
        assert outcome.reason == "consent-required"
        assert message_service.list_thread(db_engine, viewer_id="alice", other_id="bob") == []
        assert buffer.recent("alice", tail=1)[0]["reason"] == "consent-required"

    def test_accepted_contact_without_dm_toggle(self, make_member, send, connect):
        make_member("alice")
        make_member("bob")
        connect("alice", "bob")
        assert send("alice", "bob").stored is False

    def test_accepted_contact_and_dm_toggle(self, db_engine, make_member, send, connect):
        make_member("alice")
        make_member("bob", allow_direct_messages=True)
        connect("alice", "bob")

        outcome = send("alice", "bob", "Thanks for connecting")
        assert outcome.stored is True
        assert outcome.flagged is False
        assert outcome.message_id is not None

        thread = message_service.list_thread(db_engine, viewer_id="bob", other_id="alice")
        assert [m["content"] for m in thread] == ["Thanks for connecting"]

    def test_channel_is_bidirectional_but_uses_receiver_policy(self, make_member, send, connect):
        make_member("alice", allow_direct_messages=True)
        make_member("bob")
        connect("alice", "bob")
        # bob replies into alice's open inbox; alice cannot write to bob's closed one
        assert send("bob", "alice").stored is True
        assert send("alice", "bob").stored is False

    def test_toggle_off_closes_channel(self, db_engine, make_member, send, connect, emitter):
        make_member("alice")
        make_member("bob", allow_direct_messages=True)
        connect("alice", "bob")
        assert message_service.can_message(db_engine, "alice", "bob", emitter=emitter)

        update_policy(
            db_engine, actor_id="bob", member_id="bob", emitter=emitter,
            allow_direct_messages=False,
        )
        assert not message_service.can_message(db_engine, "alice", "bob", emitter=emitter)
        assert send("alice", "bob").stored is False

    def test_consent_check_is_audited(self, db_engine, make_member, connect, emitter, buffer):
        make_member("alice")
        make_member("bob", allow_direct_messages=True)

        assert not message_service.can_message(db_engine, "alice", "bob", emitter=emitter)
        denied = buffer.recent("alice", tail=1)[0]
        assert denied["kind"] == "consent_checked"
        assert denied["decision"] == "denied"
        assert denied["reason"] == "consent-required"

        connect("alice", "bob")
        assert message_service.can_message(db_engine, "alice", "bob", emitter=emitter)
        allowed = buffer.recent("bob", tail=1)[0]
        assert allowed["kind"] == "consent_checked"
        assert allowed["decision"] == "allowed"
        assert allowed["reason"] == "open"

    def test_flagged_message_is_still_stored(self, db_engine, make_member, send, connect):
        make_member("alice")
        make_member("bob", allow_direct_messages=True)
        connect("alice", "bob")

        moderator = MagicMock(spec=ModerationProvider)
        moderator.moderate.return_value = True
        outcome = send("alice", "bob", "questionable", moderator=moderator)

        assert outcome.stored is True
        assert outcome.flagged is True
        moderator.moderate.assert_called_once_with("questionable")
        thread = message_service.list_thread(db_engine, viewer_id="alice", other_id="bob")
        assert thread[0]["is_flagged"] is True

    def test_moderator_failure_is_dependency_unavailable(
        self, db_engine, make_member, send, connect
    ):
        make_member("alice")
        make_member("bob", allow_direct_messages=True)
        connect("alice", "bob")

        moderator = MagicMock(spec=ModerationProvider)
        moderator.moderate.side_effect = ConnectionError("provider down")
        with pytest.raises(DependencyUnavailable) as exc_info:
            send("alice", "bob", moderator=moderator)
        assert exc_info.value.retryable
        assert message_service.list_thread(db_engine, viewer_id="alice", other_id="bob") == []

    def test_denied_send_skips_moderation(self, make_member, send):
        make_member("alice")
        make_member("bob")
        moderator = MagicMock(spec=ModerationProvider)
        send("alice", "bob", moderator=moderator)
        moderator.moderate.assert_not_called()

    @pytest.mark.parametrize("content, code", [("   ", "empty-content"), ("x" * 4001, "content-too-long")])
    def test_invalid_content(self, make_member, send, content, code):
        make_member("alice")
        make_member("bob")
        with pytest.raises(ValidationError) as exc_info:
            send("alice", "bob", content)
        assert exc_info.value.code == code


class TestThread:
    def test_ordered_by_time_then_id(self, db_engine, make_member, send, connect):
        make_member("alice", allow_direct_messages=True)
        make_member("bob", allow_direct_messages=True)
        connect("alice", "bob")

        send("alice", "bob", "second", now=T0 + timedelta(seconds=1))
        send("bob", "alice", "first", now=T0)
        send("alice", "bob", "third", now=T0 + timedelta(seconds=1))

        thread = message_service.list_thread(db_engine, viewer_id="alice", other_id="bob")
        assert [m["content"] for m in thread] == ["first", "second", "third"]

    def test_limit(self, db_engine, make_member, send, connect):
        make_member("alice")
        make_member("bob", allow_direct_messages=True)
        connect("alice", "bob")
        for i in range(3):
            send("alice", "bob", f"m{i}", now=T0 + timedelta(seconds=i))
        thread = message_service.list_thread(db_engine, viewer_id="bob", other_id="alice", limit=2)
        assert [m["content"] for m in thread] == ["m0", "m1"]

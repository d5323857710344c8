"""
tests/test_transfer_engine.py — Transfer Eligibility Resolver Tests
=====================================================================
Pure-function tests for role routing, receptive mode, community recipient,
and the recipient/platform split.
"""

from __future__ import annotations

import pytest

from heartline.constants import PLATFORM_ACCOUNT_REF, RECOGNITION_TIERS
from heartline.engine.roles import Member, Role, parse_role
from heartline.engine.transfer import (
    TransferReason,
    allocate,
    evaluate_transfer,
    tier_for_amount,
    validate_amount,
)
from heartline.errors import ValidationError


def _single(mid="s1", receptive=False):
    return Member(id=mid, role=Role.SINGLE, receptive=receptive)


def _partner(mid="p1"):
    return Member(id=mid, role=Role.INTENTIONAL_PARTNER)


def _model(mid="m1"):
    return Member(id=mid, role=Role.MARRIED_LOVE_MODEL)


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------
class TestAllocate:
    def test_special_tier_split(self):
        result = allocate(10000)
        assert result.recipient_share == 6000
        assert result.platform_share == 4000
        assert result.platform_account_ref == PLATFORM_ACCOUNT_REF

    @pytest.mark.parametrize("amount", [1, 3, 7, 99, 1001, 12345, 50000])
    def test_shares_sum_to_amount(self, amount):
        result = allocate(amount)
        assert result.recipient_share + result.platform_share == amount
        assert result.recipient_share == amount * 60 // 100

    def test_odd_amount_remainder_goes_to_platform(self):
        result = allocate(7)
        assert result.recipient_share == 4
        assert result.platform_share == 3

    def test_custom_percent(self):
        result = allocate(1000, recipient_share_percent=75, platform_account_ref="acct")
        assert (result.recipient_share, result.platform_share) == (750, 250)
        assert result.platform_account_ref == "acct"


class TestAmountValidation:
    @pytest.mark.parametrize("bad", [0, -1, -1000, 1.5, "100", None, True])
    def test_rejects_non_positive_or_non_integer(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            validate_amount(bad)
        assert exc_info.value.code == "invalid-amount"

    def test_evaluate_rejects_zero(self):
        with pytest.raises(ValidationError):
            evaluate_transfer(_model(), _partner(), 0)


class TestTiers:
    def test_ladder_amounts(self):
        assert [t["amount"] for t in RECOGNITION_TIERS.values()] == [1000, 10000, 50000]

    def test_tier_for_amount(self):
        assert tier_for_amount(10000) == "special"
        assert tier_for_amount(1234) is None


# ---------------------------------------------------------------------------
# Role routing
# ---------------------------------------------------------------------------
class TestRoleRouting:
    @pytest.mark.parametrize(
        "sender, receiver",
        [
            (_single(), _model()),
            (_partner(), _model()),
            (_model(), _partner()),
            (_model(), _single(receptive=True)),
        ],
    )
    def test_allowed_combinations(self, sender, receiver):
        decision = evaluate_transfer(sender, receiver, 1000)
        assert decision.allowed
        assert decision.reason is None
        assert decision.allocation.recipient_share == 600

    @pytest.mark.parametrize(
        "sender, receiver",
        [
            (_single("a"), _single("b", receptive=True)),
            (_partner("a"), _partner("b")),
            (_single(), _partner()),
            (_partner(), _single(receptive=True)),
            (_model("a"), _model("b")),
        ],
    )
    def test_wrong_tier(self, sender, receiver):
        decision = evaluate_transfer(sender, receiver, 1000)
        assert not decision.allowed
        assert decision.reason is TransferReason.WRONG_TIER
        assert decision.allocation is None

    def test_non_receptive_single_denied(self):
        decision = evaluate_transfer(_model(), _single(receptive=False), 1000)
        assert not decision.allowed
        assert decision.reason is TransferReason.NOT_RECEPTIVE
        assert "Receptive Mode" in decision.message

    def test_receptive_toggle_flips_decision(self):
        assert not evaluate_transfer(_model(), _single(receptive=False), 1000).allowed
        assert evaluate_transfer(_model(), _single(receptive=True), 1000).allowed


# ---------------------------------------------------------------------------
# Community recipient & self-transfer
# ---------------------------------------------------------------------------
class TestSpecialRecipients:
    def test_none_receiver_is_community(self):
        decision = evaluate_transfer(_model(), None, 1000)
        assert decision.reason is TransferReason.COMMUNITY_RECIPIENT

    def test_community_id_denied_for_every_sender(self):
        community = Member(id="community", role=Role.MARRIED_LOVE_MODEL)
        for sender in (_single(), _partner(), _model()):
            decision = evaluate_transfer(sender, community, 50000)
            assert decision.reason is TransferReason.COMMUNITY_RECIPIENT

    def test_custom_community_id(self):
        hub = Member(id="hub", role=Role.MARRIED_LOVE_MODEL)
        decision = evaluate_transfer(_partner(), hub, 1000, community_recipient_id="hub")
        assert decision.reason is TransferReason.COMMUNITY_RECIPIENT

    @pytest.mark.parametrize("member", [_single(receptive=True), _partner(), _model()])
    def test_same_member_never_allowed(self, member):
        assert not evaluate_transfer(member, member, 1000).allowed

    def test_single_to_love_model_scenario(self):
        decision = evaluate_transfer(_single(receptive=False), _model(), 10000)
        assert decision.allowed
        assert decision.allocation.recipient_share == 6000
        assert decision.allocation.platform_share == 4000

    def test_self_transfer_denied(self):
        sender = Member(id="same", role=Role.MARRIED_LOVE_MODEL)
        receiver = Member(id="same", role=Role.SINGLE, receptive=True)
        decision = evaluate_transfer(sender, receiver, 1000)
        assert decision.reason is TransferReason.SELF_TRANSFER


# ---------------------------------------------------------------------------
# Role parsing
# ---------------------------------------------------------------------------
class TestParseRole:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("single", Role.SINGLE),
            ("Intentional Partners", Role.INTENTIONAL_PARTNER),
            ("Married/Love Models", Role.MARRIED_LOVE_MODEL),
            ("Love Model (Married)", Role.MARRIED_LOVE_MODEL),
            ("married_love_model", Role.MARRIED_LOVE_MODEL),
        ],
    )
    def test_known_labels(self, label, expected):
        assert parse_role(label) is expected

    @pytest.mark.parametrize("label", ["Love Model", "married", "Singles group", ""])
    def test_no_substring_matching(self, label):
        with pytest.raises(ValidationError) as exc_info:
            parse_role(label)
        assert exc_info.value.code == "unknown-role"

"""
heartline.engine.transfer — Transfer Eligibility Resolver
==========================================================

Pure decision function: no DB I/O, no ledger I/O.

Rules run in order and the first failure wins:

  community recipient → role tier → receptive mode → self-transfer

On success the amount is split with :func:`allocate` so that
``recipient_share + platform_share == amount`` exactly.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from heartline.constants import (
    COMMUNITY_RECIPIENT_ID,
    PLATFORM_ACCOUNT_REF,
    RECIPIENT_SHARE_PERCENT,
    RECOGNITION_TIERS,
)
from heartline.engine.roles import Member, Role
from heartline.errors import ValidationError

logger = logging.getLogger(__name__)

__all__ = [
    "AllocationResult",
    "TransferDecision",
    "TransferIntent",
    "TransferReason",
    "allocate",
    "evaluate_transfer",
    "tier_for_amount",
]


class TransferReason(enum.StrEnum):
    COMMUNITY_RECIPIENT = "community-recipient"
    WRONG_TIER = "wrong-tier"
    NOT_RECEPTIVE = "not-receptive"
    SELF_TRANSFER = "self-transfer"


REASON_MESSAGES: dict[TransferReason, str] = {
    TransferReason.COMMUNITY_RECIPIENT: (
        "Recognition tokens cannot be transferred directly to the community. "
        "Please select a verified recipient."
    ),
    TransferReason.WRONG_TIER: (
        "This role combination cannot exchange recognition tokens."
    ),
    TransferReason.NOT_RECEPTIVE: (
        "Supportive tokens can only be transferred to Singles who are in "
        "'Receptive Mode'."
    ),
    TransferReason.SELF_TRANSFER: "You cannot transfer tokens to your own profile.",
}

# Who each sender role may recognise (receptive Singles handled separately).
_ALLOWED_RECEIVERS: dict[Role, frozenset[Role]] = {
    Role.SINGLE: frozenset({Role.MARRIED_LOVE_MODEL}),
    Role.INTENTIONAL_PARTNER: frozenset({Role.MARRIED_LOVE_MODEL}),
    Role.MARRIED_LOVE_MODEL: frozenset({Role.INTENTIONAL_PARTNER, Role.SINGLE}),
}


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TransferIntent:
    """A proposed transfer.  Exists only for the duration of a decision."""

    sender_id: str
    receiver_id: str
    amount: int
    tier: str | None = None


@dataclass(frozen=True, slots=True)
class AllocationResult:
    recipient_share: int
    platform_share: int
    platform_account_ref: str


@dataclass(frozen=True, slots=True)
class TransferDecision:
    allowed: bool
    reason: TransferReason | None = None
    allocation: AllocationResult | None = None

    @property
    def message(self) -> str | None:
        return REASON_MESSAGES.get(self.reason) if self.reason else None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def validate_amount(amount: object) -> int:
    """Return *amount* if it is a positive integer, else raise."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("invalid-amount", "Amount must be a positive integer")
    return amount


def tier_for_amount(amount: int) -> str | None:
    """Return the tier key whose ladder amount equals *amount*, if any."""
    for key, tier in RECOGNITION_TIERS.items():
        if tier["amount"] == amount:
            return key
    return None


def allocate(
    amount: int,
    *,
    recipient_share_percent: int = RECIPIENT_SHARE_PERCENT,
    platform_account_ref: str = PLATFORM_ACCOUNT_REF,
) -> AllocationResult:
    """Split *amount*: recipient gets the floor of its percentage, the
    platform gets the remainder."""
    validate_amount(amount)
    recipient = amount * recipient_share_percent // 100
    return AllocationResult(
        recipient_share=recipient,
        platform_share=amount - recipient,
        platform_account_ref=platform_account_ref,
    )


def _check_roles(sender: Member, receiver: Member) -> TransferReason | None:
    allowed = _ALLOWED_RECEIVERS.get(sender.role, frozenset())
    if receiver.role not in allowed:
        return TransferReason.WRONG_TIER
    if receiver.role is Role.SINGLE and not receiver.receptive:
        return TransferReason.NOT_RECEPTIVE
    return None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------
def evaluate_transfer(
    sender: Member,
    receiver: Member | None,
    amount: int,
    *,
    community_recipient_id: str = COMMUNITY_RECIPIENT_ID,
    recipient_share_percent: int = RECIPIENT_SHARE_PERCENT,
    platform_account_ref: str = PLATFORM_ACCOUNT_REF,
) -> TransferDecision:
    """Decide whether *sender* may transfer *amount* tokens to *receiver*.

    ``receiver=None`` stands for a recipient that is not an individually
    named member (the aggregate community account).

    Raises :class:`~heartline.errors.ValidationError` for a non-positive
    amount; every rule failure is returned as a denied decision.
    """
    validate_amount(amount)

    if receiver is None or receiver.id == community_recipient_id:
        return TransferDecision(False, TransferReason.COMMUNITY_RECIPIENT)

    reason = _check_roles(sender, receiver)
    if reason is not None:
        return TransferDecision(False, reason)

    if sender.id == receiver.id:
        return TransferDecision(False, TransferReason.SELF_TRANSFER)

    allocation = allocate(
        amount,
        recipient_share_percent=recipient_share_percent,
        platform_account_ref=platform_account_ref,
    )
    logger.debug(
        "Transfer %s -> %s allowed: %d (%d/%d)",
        sender.id, receiver.id, amount,
        allocation.recipient_share, allocation.platform_share,
    )
    return TransferDecision(True, None, allocation)

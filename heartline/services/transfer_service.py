"""
heartline.services.transfer_service — Transfer Authorization
=============================================================

Loads both members, runs the pure resolver in
:mod:`heartline.engine.transfer`, and reports the decision.  Execution of
an allowed transfer is delegated to a :class:`LedgerExecutor`; this module
never mutates balances itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from heartline.config import HeartlineConfig
from heartline.database.engine import get_session
from heartline.engine.events import EventKind
from heartline.engine.transfer import (
    TransferDecision,
    TransferIntent,
    evaluate_transfer,
    validate_amount,
)
from heartline.errors import HeartlineError
from heartline.services.collaborators import LedgerExecutor, execute_allocation
from heartline.services.member_service import load_member

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from heartline.services.audit import AuditEmitter

logger = logging.getLogger(__name__)


def evaluate(
    engine: Engine,
    *,
    sender_id: str,
    receiver_id: str,
    amount: int,
    emitter: AuditEmitter,
    config: HeartlineConfig | None = None,
) -> TransferDecision:
    """Decide a proposed transfer from *sender_id* to *receiver_id*."""
    config = config or HeartlineConfig()

    try:
        validate_amount(amount)
        with get_session(engine) as session:
            sender = load_member(session, sender_id)
            receiver = (
                None if receiver_id == config.community_recipient_id
                else load_member(session, receiver_id)
            )
        decision = evaluate_transfer(
            sender,
            receiver,
            amount,
            community_recipient_id=config.community_recipient_id,
            recipient_share_percent=config.recipient_share_percent,
            platform_account_ref=config.platform_account_ref,
        )
    except HeartlineError as exc:
        emitter.denied(EventKind.TRANSFER_EVALUATED, exc.code, sender_id, receiver_id)
        raise

    if decision.allowed:
        emitter.allowed(EventKind.TRANSFER_EVALUATED, "eligible", sender_id, receiver_id)
    else:
        emitter.denied(
            EventKind.TRANSFER_EVALUATED, decision.reason.value, sender_id, receiver_id
        )
    return decision


def authorize_transfer(
    engine: Engine,
    *,
    intent: TransferIntent,
    ledger: LedgerExecutor,
    emitter: AuditEmitter,
    config: HeartlineConfig | None = None,
) -> tuple[TransferDecision, str | None]:
    """Evaluate *intent* and, if allowed, hand the allocation to *ledger*.

    Returns ``(decision, ledger_ref)``; ``ledger_ref`` is ``None`` for a
    denied transfer.  A ledger failure raises
    :class:`~heartline.errors.DependencyUnavailable`.
    """
    decision = evaluate(
        engine,
        sender_id=intent.sender_id,
        receiver_id=intent.receiver_id,
        amount=intent.amount,
        emitter=emitter,
        config=config,
    )
    if not decision.allowed or decision.allocation is None:
        return decision, None

    try:
        ledger_ref = execute_allocation(ledger, intent, decision.allocation)
    except HeartlineError as exc:
        emitter.denied(
            EventKind.TRANSFER_EXECUTED, exc.code, intent.sender_id, intent.receiver_id
        )
        raise

    logger.info(
        "Transfer executed %s -> %s: %d (ledger ref %s)",
        intent.sender_id, intent.receiver_id, intent.amount, ledger_ref,
    )
    emitter.allowed(
        EventKind.TRANSFER_EXECUTED, "executed", intent.sender_id, intent.receiver_id
    )
    return decision, ledger_ref

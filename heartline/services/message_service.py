"""
heartline.services.message_service — Consent Gate
==================================================

Direct messages are stored only when the consent rule in
:mod:`heartline.engine.consent` holds at send time.  Allowed messages pass
through the moderation provider; a flagged verdict is recorded and returned
to the caller but never blocks delivery.

Threads are ordered by ``created_at`` with the message id (a monotonically
increasing sequence) breaking ties.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from heartline.constants import MAX_MESSAGE_LENGTH
from heartline.database.engine import get_session
from heartline.database.models import Message
from heartline.engine.consent import CONSENT_REQUIRED, can_message as consent_rule
from heartline.engine.events import EventKind
from heartline.errors import HeartlineError, ValidationError
from heartline.services.collaborators import ModerationProvider, moderate_content
from heartline.services.member_service import load_member, load_policy
from heartline.services.request_service import accepted_contact_exists

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from heartline.services.audit import AuditEmitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MessageOutcome:
    stored: bool
    flagged: bool = False
    reason: str | None = None
    message_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"stored": self.stored, "flagged": self.flagged}
        if self.reason is not None:
            body["reason"] = self.reason
        if self.message_id is not None:
            body["message_id"] = self.message_id
        return body


def _consent_open(session: Session, sender_id: str, receiver_id: str) -> bool:
    load_member(session, sender_id)
    load_member(session, receiver_id)
    return consent_rule(
        accepted_contact_exists=accepted_contact_exists(session, sender_id, receiver_id),
        receiver_policy=load_policy(session, receiver_id),
    )


def message_to_dict(row: Message) -> dict[str, Any]:
    return {
        "id": row.id,
        "sender_id": row.sender_id,
        "receiver_id": row.receiver_id,
        "content": row.content,
        "is_flagged": row.is_flagged,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def can_message(
    engine: Engine, sender_id: str, receiver_id: str, *, emitter: AuditEmitter
) -> bool:
    """Whether *sender_id* may message *receiver_id* right now."""
    try:
        with get_session(engine) as session:
            allowed = _consent_open(session, sender_id, receiver_id)
    except HeartlineError as exc:
        emitter.denied(EventKind.CONSENT_CHECKED, exc.code, sender_id, receiver_id)
        raise

    if allowed:
        emitter.allowed(EventKind.CONSENT_CHECKED, "open", sender_id, receiver_id)
    else:
        emitter.denied(EventKind.CONSENT_CHECKED, CONSENT_REQUIRED, sender_id, receiver_id)
    return allowed


def submit_message(
    engine: Engine,
    *,
    sender_id: str,
    receiver_id: str,
    content: str,
    moderator: ModerationProvider,
    emitter: AuditEmitter,
    now: datetime | None = None,
) -> MessageOutcome:
    """Store a direct message if consent holds.

    Denied sends return ``stored=False, reason="consent-required"`` and
    write nothing.  Raises :class:`~heartline.errors.ValidationError` for
    empty or oversized content and
    :class:`~heartline.errors.DependencyUnavailable` when the store or the
    moderation provider fails.
    """
    now = now or datetime.now(UTC)

    try:
        text = (content or "").strip()
        if not text:
            raise ValidationError("empty-content", "Message content is empty")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                "content-too-long",
                f"Messages are limited to {MAX_MESSAGE_LENGTH} characters",
            )

        with get_session(engine) as session:
            allowed = _consent_open(session, sender_id, receiver_id)
        if not allowed:
            emitter.denied(EventKind.MESSAGE_SUBMITTED, CONSENT_REQUIRED, sender_id, receiver_id)
            return MessageOutcome(stored=False, reason=CONSENT_REQUIRED)

        flagged = moderate_content(moderator, text)

        with get_session(engine) as session:
            # Policy may have changed while moderation ran.
            if not _consent_open(session, sender_id, receiver_id):
                emitter.denied(
                    EventKind.MESSAGE_SUBMITTED, CONSENT_REQUIRED, sender_id, receiver_id
                )
                return MessageOutcome(stored=False, reason=CONSENT_REQUIRED)

            row = Message(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=text,
                is_flagged=flagged,
                created_at=now,
            )
            session.add(row)
            session.flush()
            message_id = row.id
    except HeartlineError as exc:
        emitter.denied(EventKind.MESSAGE_SUBMITTED, exc.code, sender_id, receiver_id)
        raise

    if flagged:
        logger.warning("Message %d from %s flagged by moderation", message_id, sender_id)
    emitter.allowed(
        EventKind.MESSAGE_SUBMITTED, "flagged" if flagged else "stored", sender_id, receiver_id
    )
    return MessageOutcome(stored=True, flagged=flagged, message_id=message_id)


def list_thread(
    engine: Engine,
    *,
    viewer_id: str,
    other_id: str,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Messages between *viewer_id* and *other_id*, oldest first."""
    stmt = (
        select(Message)
        .where(or_(
            and_(Message.sender_id == viewer_id, Message.receiver_id == other_id),
            and_(Message.sender_id == other_id, Message.receiver_id == viewer_id),
        ))
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    if limit:
        stmt = stmt.limit(limit)

    with get_session(engine) as session:
        load_member(session, other_id)
        return [message_to_dict(m) for m in session.scalars(stmt).all()]

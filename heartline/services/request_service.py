"""
heartline.services.request_service — Request Lifecycle Manager
===============================================================

Atomic ``create`` and ``transition`` of contact / mentorship requests.

Each operation is one transaction:

* ``create`` locks the sender's member row (PostgreSQL ``FOR UPDATE``),
  counts the sender's recent requests, checks pending / blocked state, and
  inserts, all before commit.  The partial unique index
  ``uq_interaction_requests_pending`` is the final arbiter: a concurrent
  duplicate that slips past the read loses with ``DuplicatePending``.
* ``transition`` is a compare-and-swap
  (``UPDATE … WHERE id = :id AND status = 'pending'``); a zero row count
  means another caller got there first (``NotPending``).

Every outcome, allowed or denied, is reported to the audit emitter.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, exists, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from heartline.database.engine import get_session
from heartline.database.models import InteractionRequest, RequestKind, RequestStatus
from heartline.engine.events import EventKind
from heartline.engine.requests import (
    CreateFacts,
    RequestReason,
    check_create,
    check_transition,
    normalize_payload,
    parse_kind,
    parse_status,
)
from heartline.errors import HeartlineError, NotFound, StateConflict, Unauthorized
from heartline.services.member_service import load_member, load_policy
from heartline.services.quota import RequestQuota

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from heartline.services.audit import AuditEmitter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------
def _pending_exists(session: Session, sender_id: str, receiver_id: str, kind: RequestKind) -> bool:
    return bool(session.scalar(
        select(exists().where(
            InteractionRequest.sender_id == sender_id,
            InteractionRequest.receiver_id == receiver_id,
            InteractionRequest.kind == kind.value,
            InteractionRequest.status == RequestStatus.PENDING.value,
        ))
    ))


def _blocked_by_receiver(session: Session, sender_id: str, receiver_id: str) -> bool:
    """True if *receiver_id* ever blocked a request from *sender_id*."""
    return bool(session.scalar(
        select(exists().where(
            InteractionRequest.sender_id == sender_id,
            InteractionRequest.receiver_id == receiver_id,
            InteractionRequest.status == RequestStatus.BLOCKED.value,
        ))
    ))


def accepted_contact_exists(session: Session, member_a: str, member_b: str) -> bool:
    """True if an accepted contact request links the pair in either direction."""
    return bool(session.scalar(
        select(exists().where(
            InteractionRequest.kind == RequestKind.CONTACT.value,
            InteractionRequest.status == RequestStatus.ACCEPTED.value,
            or_(
                and_(
                    InteractionRequest.sender_id == member_a,
                    InteractionRequest.receiver_id == member_b,
                ),
                and_(
                    InteractionRequest.sender_id == member_b,
                    InteractionRequest.receiver_id == member_a,
                ),
            ),
        ))
    ))


def request_to_dict(row: InteractionRequest) -> dict[str, Any]:
    return {
        "id": row.id,
        "sender_id": row.sender_id,
        "receiver_id": row.receiver_id,
        "kind": row.kind,
        "purpose": row.purpose,
        "payload": row.payload,
        "status": row.status,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def create_request(
    engine: Engine,
    *,
    sender_id: str,
    receiver_id: str,
    kind: str | RequestKind,
    emitter: AuditEmitter,
    message: str | None = None,
    goals: str | None = None,
    background: str | None = None,
    purpose: str | None = None,
    quota: RequestQuota | None = None,
    now: datetime | None = None,
) -> int:
    """Open a pending request from *sender_id* to *receiver_id*.

    Returns the new request id.  Raises
    :class:`~heartline.errors.PolicyDenied` (``QuotaExceeded``,
    ``ReceiverClosed``, ``NotMentor``),
    :class:`~heartline.errors.StateConflict` (``DuplicatePending``) or
    :class:`~heartline.errors.ValidationError`.
    """
    now = now or datetime.now(UTC)
    quota = quota or RequestQuota()

    try:
        request_kind = parse_kind(kind)
        tag, payload = normalize_payload(
            request_kind,
            message=message,
            goals=goals,
            background=background,
            purpose=purpose,
        )

        with get_session(engine) as session:
            sender = load_member(session, sender_id, for_update=True)
            receiver = load_member(session, receiver_id)
            sender_policy = load_policy(session, sender_id)
            receiver_policy = load_policy(session, receiver_id)

            _, quota_info = quota.check(
                session, sender_id, sender_policy.daily_request_limit, now
            )
            facts = CreateFacts(
                recent_request_count=quota_info["count"],
                pending_exists=_pending_exists(session, sender_id, receiver_id, request_kind),
                blocked_by_receiver=_blocked_by_receiver(session, sender_id, receiver_id),
            )
            check_create(
                sender,
                receiver,
                request_kind,
                sender_policy=sender_policy,
                receiver_policy=receiver_policy,
                facts=facts,
            )

            row = InteractionRequest(
                sender_id=sender_id,
                receiver_id=receiver_id,
                kind=request_kind.value,
                purpose=tag,
                payload=payload,
                status=RequestStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            try:
                with session.begin_nested():   # SAVEPOINT
                    session.add(row)
                    session.flush()
            except IntegrityError:
                raise StateConflict(
                    RequestReason.DUPLICATE_PENDING,
                    "A request to this member is already pending.",
                ) from None
            request_id = row.id
    except HeartlineError as exc:
        emitter.denied(EventKind.REQUEST_CREATED, exc.code, sender_id, receiver_id)
        raise

    logger.info(
        "Request %d created: %s -> %s (%s)", request_id, sender_id, receiver_id,
        request_kind.value,
    )
    emitter.allowed(EventKind.REQUEST_CREATED, request_kind.value, sender_id, receiver_id)
    return request_id


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------
def transition_request(
    engine: Engine,
    *,
    request_id: int,
    actor_id: str,
    new_status: str | RequestStatus,
    emitter: AuditEmitter,
    now: datetime | None = None,
) -> RequestStatus:
    """Move a pending request to a terminal status on the receiver's behalf.

    Raises :class:`~heartline.errors.Unauthorized` (``InvalidActor``),
    :class:`~heartline.errors.StateConflict` (``NotPending``),
    :class:`~heartline.errors.NotFound` or
    :class:`~heartline.errors.ValidationError`.
    """
    now = now or datetime.now(UTC)
    subjects: tuple[str, ...] = (actor_id,)

    try:
        status = parse_status(new_status)
        with get_session(engine) as session:
            row = session.get(InteractionRequest, request_id)
            if row is None:
                raise NotFound("unknown-request", f"Request {request_id} not found")
            subjects = (row.sender_id, row.receiver_id)

            check_transition(
                receiver_id=row.receiver_id,
                current_status=RequestStatus(row.status),
                actor_id=actor_id,
                new_status=status,
            )

            result = session.execute(
                update(InteractionRequest)
                .where(
                    InteractionRequest.id == request_id,
                    InteractionRequest.status == RequestStatus.PENDING.value,
                )
                .values(status=status.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise StateConflict(
                    RequestReason.NOT_PENDING, "Request is no longer pending."
                )
    except HeartlineError as exc:
        emitter.denied(EventKind.REQUEST_TRANSITIONED, exc.code, *subjects)
        raise

    logger.info("Request %d moved to %s by %s", request_id, status.value, actor_id)
    emitter.allowed(EventKind.REQUEST_TRANSITIONED, status.value, *subjects)
    return status


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_request(engine: Engine, *, request_id: int, viewer_id: str) -> dict[str, Any]:
    """Return a request visible to one of its two participants."""
    with get_session(engine) as session:
        row = session.get(InteractionRequest, request_id)
        if row is None:
            raise NotFound("unknown-request", f"Request {request_id} not found")
        if viewer_id not in (row.sender_id, row.receiver_id):
            raise Unauthorized("not-participant", "Only participants may view a request")
        return request_to_dict(row)


def _list_requests(
    engine: Engine,
    *,
    column,
    member_id: str,
    kind: str | RequestKind | None,
    status: str | RequestStatus | None,
) -> list[dict[str, Any]]:
    stmt = select(InteractionRequest).where(column == member_id)
    if kind is not None:
        stmt = stmt.where(InteractionRequest.kind == parse_kind(kind).value)
    if status is not None:
        stmt = stmt.where(InteractionRequest.status == parse_status(status).value)
    stmt = stmt.order_by(InteractionRequest.created_at.desc(), InteractionRequest.id.desc())

    with get_session(engine) as session:
        return [request_to_dict(r) for r in session.scalars(stmt).all()]


def list_incoming(
    engine: Engine,
    member_id: str,
    *,
    kind: str | RequestKind | None = None,
    status: str | RequestStatus | None = None,
) -> list[dict[str, Any]]:
    """Requests received by *member_id*, newest first."""
    return _list_requests(
        engine, column=InteractionRequest.receiver_id,
        member_id=member_id, kind=kind, status=status,
    )


def list_outgoing(
    engine: Engine,
    member_id: str,
    *,
    kind: str | RequestKind | None = None,
    status: str | RequestStatus | None = None,
) -> list[dict[str, Any]]:
    """Requests sent by *member_id*, newest first."""
    return _list_requests(
        engine, column=InteractionRequest.sender_id,
        member_id=member_id, kind=kind, status=status,
    )

"""
heartline.engine.requests — Request Lifecycle Rules
====================================================

Pure rules for contact and mentorship requests.  The state machine is::

    pending ──► accepted | rejected | blocked      (all terminal)

The service layer gathers the facts (recent request count, pending and
blocked records) inside one transaction and asks these functions for a
verdict; every denial is raised as a typed error carrying its reason code.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from heartline.constants import CONTACT_PURPOSES, DEFAULT_CONTACT_PURPOSE
from heartline.database.models import TERMINAL_STATUSES, RequestKind, RequestStatus
from heartline.engine.roles import Member, PrivacyPolicy, Role
from heartline.errors import PolicyDenied, StateConflict, Unauthorized, ValidationError

__all__ = [
    "CreateFacts",
    "RequestReason",
    "check_create",
    "check_transition",
    "normalize_payload",
    "parse_kind",
    "parse_status",
]


class RequestReason(enum.StrEnum):
    QUOTA_EXCEEDED = "QuotaExceeded"
    RECEIVER_CLOSED = "ReceiverClosed"
    NOT_MENTOR = "NotMentor"
    DUPLICATE_PENDING = "DuplicatePending"
    INVALID_ACTOR = "InvalidActor"
    NOT_PENDING = "NotPending"


@dataclass(frozen=True, slots=True)
class CreateFacts:
    """Store-derived facts needed to decide a ``create``."""

    recent_request_count: int
    pending_exists: bool
    blocked_by_receiver: bool


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------
def parse_kind(value: str | RequestKind) -> RequestKind:
    try:
        return RequestKind(str(value).lower())
    except ValueError:
        raise ValidationError("unknown-kind", f"Unknown request kind: {value!r}") from None


def parse_status(value: str | RequestStatus) -> RequestStatus:
    try:
        return RequestStatus(str(value).lower())
    except ValueError:
        raise ValidationError("unknown-status", f"Unknown request status: {value!r}") from None


def normalize_payload(
    kind: RequestKind,
    *,
    message: str | None = None,
    goals: str | None = None,
    background: str | None = None,
    purpose: str | None = None,
) -> tuple[str | None, dict[str, str]]:
    """Validate and trim the request body; return ``(purpose, payload)``.

    Contact requests carry a purpose tag and a message.  Mentorship
    applications carry goals and background and have no purpose.
    """
    if kind is RequestKind.CONTACT:
        text = (message or "").strip()
        if not text:
            raise ValidationError("empty-payload", "A contact request needs a message")
        tag = (purpose or DEFAULT_CONTACT_PURPOSE).strip().lower()
        if tag not in CONTACT_PURPOSES:
            raise ValidationError("unknown-purpose", f"Unknown contact purpose: {purpose!r}")
        return tag, {"message": text}

    goals_text = (goals or "").strip()
    background_text = (background or "").strip()
    if not goals_text or not background_text:
        raise ValidationError(
            "empty-payload", "A mentorship application needs goals and background"
        )
    return None, {"goals": goals_text, "background": background_text}


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def check_create(
    sender: Member,
    receiver: Member,
    kind: RequestKind,
    *,
    sender_policy: PrivacyPolicy,
    receiver_policy: PrivacyPolicy,
    facts: CreateFacts,
) -> None:
    """Raise if *sender* may not open a *kind* request to *receiver*.

    Order: self-request, quota, receiver acceptance (privacy or mentor
    role), prior block, duplicate pending.
    """
    if sender.id == receiver.id:
        raise ValidationError("self-request", "Members cannot send requests to themselves")

    if facts.recent_request_count >= sender_policy.daily_request_limit:
        raise PolicyDenied(
            RequestReason.QUOTA_EXCEEDED,
            "You have reached your daily limit for requests.",
        )

    if kind is RequestKind.CONTACT:
        if not receiver_policy.allow_connection_requests:
            raise PolicyDenied(
                RequestReason.RECEIVER_CLOSED,
                "This member is not accepting connection requests at this time.",
            )
    elif receiver.role is not Role.MARRIED_LOVE_MODEL:
        raise PolicyDenied(
            RequestReason.NOT_MENTOR,
            "Only Love Models receive mentorship applications.",
        )

    if facts.blocked_by_receiver:
        raise PolicyDenied(
            RequestReason.RECEIVER_CLOSED,
            "This member is not accepting connection requests at this time.",
        )

    if facts.pending_exists:
        raise StateConflict(
            RequestReason.DUPLICATE_PENDING,
            "A request to this member is already pending.",
        )


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------
def check_transition(
    *,
    receiver_id: str,
    current_status: RequestStatus,
    actor_id: str,
    new_status: RequestStatus,
) -> None:
    """Raise unless *actor_id* may move the request to *new_status*."""
    if new_status not in TERMINAL_STATUSES:
        raise ValidationError(
            "invalid-transition", f"Requests cannot be moved to {new_status.value!r}"
        )
    if actor_id != receiver_id:
        raise Unauthorized(
            RequestReason.INVALID_ACTOR,
            "Only the receiver may accept, reject or block a request.",
        )
    if current_status is not RequestStatus.PENDING:
        raise StateConflict(
            RequestReason.NOT_PENDING,
            f"Request is already {current_status.value}.",
        )

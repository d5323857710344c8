"""
heartline.services.member_service — Member & Privacy Policy Store
==================================================================

Read access to identity-owned member records, plus the privacy policy that
each member owns.  Members are mirrored in by the identity subsystem via
:func:`upsert_member`; the engine itself never changes a role.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from heartline.database.engine import get_session
from heartline.database.models import MemberRecord, PrivacyPolicyRecord, Role
from heartline.engine.events import EventKind
from heartline.engine.roles import (
    Member,
    PrivacyPolicy,
    member_from_record,
    parse_role,
    policy_from_record,
)
from heartline.errors import HeartlineError, NotFound, Unauthorized

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from heartline.services.audit import AuditEmitter

logger = logging.getLogger(__name__)

POLICY_FIELDS = frozenset({
    "allow_direct_messages",
    "allow_connection_requests",
    "daily_request_limit",
    "visible_to_roles",
})


# ---------------------------------------------------------------------------
# Session-level helpers (used inside other services' transactions)
# ---------------------------------------------------------------------------
def load_member(session: Session, member_id: str, *, for_update: bool = False) -> Member:
    """Fetch a member or raise :class:`NotFound`.

    ``for_update`` takes a row lock (``SELECT … FOR UPDATE``) on dialects
    that support it, serialising concurrent writers keyed on this member.
    """
    stmt = select(MemberRecord).where(MemberRecord.id == member_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = session.scalar(stmt)
    if row is None:
        raise NotFound("unknown-member", f"Member {member_id!r} not found")
    return member_from_record(row)


def load_policy(session: Session, member_id: str) -> PrivacyPolicy:
    return policy_from_record(session.get(PrivacyPolicyRecord, member_id))


def policy_to_dict(policy: PrivacyPolicy) -> dict[str, Any]:
    return {
        "allow_direct_messages": policy.allow_direct_messages,
        "allow_connection_requests": policy.allow_connection_requests,
        "daily_request_limit": policy.daily_request_limit,
        "visible_to_roles": sorted(r.value for r in policy.visible_to_roles),
    }


def member_to_dict(member: Member) -> dict[str, Any]:
    return {
        "id": member.id,
        "display_name": member.display_name,
        "role": member.role.value,
        "receptive": member.receptive,
        "verified": member.verified,
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_policy(engine: Engine, member_id: str) -> PrivacyPolicy:
    """Stored policy, or the defaults if the member never saved one."""
    with get_session(engine) as session:
        load_member(session, member_id)
        return load_policy(session, member_id)


def get_visible_profile(engine: Engine, *, viewer_id: str, member_id: str) -> dict[str, Any]:
    """Return *member_id*'s profile if the viewer's role may see it.

    Hidden profiles are reported as not found so their existence is not
    disclosed.
    """
    with get_session(engine) as session:
        member = load_member(session, member_id)
        if viewer_id != member_id:
            viewer = load_member(session, viewer_id)
            policy = load_policy(session, member_id)
            if not policy.is_visible_to(viewer.role):
                raise NotFound("unknown-member", f"Member {member_id!r} not found")
        return member_to_dict(member)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def upsert_member(
    engine: Engine,
    *,
    member_id: str,
    display_name: str,
    role: str | Role,
    receptive: bool = False,
    verified: bool = False,
) -> Member:
    """Insert or refresh a member mirrored from the identity subsystem."""
    parsed = parse_role(role)
    with get_session(engine) as session:
        row = session.get(MemberRecord, member_id)
        if row is None:
            row = MemberRecord(id=member_id, display_name=display_name, role=parsed.value)
            session.add(row)
        row.display_name = display_name
        row.role = parsed.value
        row.receptive = receptive
        row.verified = verified
        session.flush()
        return member_from_record(row)


def update_policy(
    engine: Engine,
    *,
    actor_id: str,
    member_id: str,
    emitter: AuditEmitter,
    **changes: Any,
) -> PrivacyPolicy:
    """Apply *changes* to *member_id*'s policy.  Only the owner may do this.

    Unknown keys are ignored; values are validated by
    :class:`~heartline.engine.roles.PrivacyPolicy`.
    """
    try:
        if actor_id != member_id:
            raise Unauthorized("not-owner", "Members can only change their own privacy policy")

        with get_session(engine) as session:
            load_member(session, member_id)
            current = load_policy(session, member_id)

            updates = {k: v for k, v in changes.items() if k in POLICY_FIELDS and v is not None}
            if "visible_to_roles" in updates:
                updates["visible_to_roles"] = frozenset(
                    parse_role(r) for r in updates["visible_to_roles"]
                )
            policy = replace(current, **updates)

            row = session.get(PrivacyPolicyRecord, member_id)
            if row is None:
                row = PrivacyPolicyRecord(member_id=member_id)
                session.add(row)
            row.allow_direct_messages = policy.allow_direct_messages
            row.allow_connection_requests = policy.allow_connection_requests
            row.daily_request_limit = policy.daily_request_limit
            row.visible_to_roles = sorted(r.value for r in policy.visible_to_roles)
    except HeartlineError as exc:
        emitter.denied(EventKind.POLICY_UPDATED, exc.code, actor_id, member_id)
        raise

    logger.info("Privacy policy updated for member %s", member_id)
    emitter.allowed(EventKind.POLICY_UPDATED, "updated", member_id)
    return policy

"""
heartline.engine.roles — Role & Policy Model
=============================================

Pure value objects for members and their privacy policy.  No DB I/O; the
services layer builds these from ORM rows via :func:`member_from_record`
and :func:`policy_from_record`.

Roles are a closed enumeration compared by exact value.  Front-end labels
("Married/Love Models", …) are resolved through an exact lookup table,
never by substring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from heartline.constants import (
    DEFAULT_ALLOW_CONNECTION_REQUESTS,
    DEFAULT_ALLOW_DIRECT_MESSAGES,
    DEFAULT_DAILY_REQUEST_LIMIT,
    MAX_DAILY_REQUEST_LIMIT,
)
from heartline.database.models import Role
from heartline.errors import ValidationError

if TYPE_CHECKING:
    from heartline.database.models import MemberRecord, PrivacyPolicyRecord

__all__ = [
    "ALL_ROLES",
    "Member",
    "PrivacyPolicy",
    "Role",
    "default_policy",
    "member_from_record",
    "parse_role",
    "policy_from_record",
]

ALL_ROLES: frozenset[Role] = frozenset(Role)

# Labels used by the community front-end, matched exactly (case-insensitive).
ROLE_LABELS: dict[str, Role] = {
    "single": Role.SINGLE,
    "intentional partner": Role.INTENTIONAL_PARTNER,
    "intentional partners": Role.INTENTIONAL_PARTNER,
    "intentional_partner": Role.INTENTIONAL_PARTNER,
    "married/love models": Role.MARRIED_LOVE_MODEL,
    "married/love model": Role.MARRIED_LOVE_MODEL,
    "love model (married)": Role.MARRIED_LOVE_MODEL,
    "married_love_model": Role.MARRIED_LOVE_MODEL,
}


def parse_role(value: str | Role) -> Role:
    """Resolve an enum value or a known display label to a :class:`Role`.

    Raises :class:`~heartline.errors.ValidationError` (``unknown-role``)
    for anything else.
    """
    if isinstance(value, Role):
        return value
    key = str(value).strip().lower()
    role = ROLE_LABELS.get(key)
    if role is None:
        raise ValidationError("unknown-role", f"Unknown member role: {value!r}")
    return role


# ---------------------------------------------------------------------------
# Member
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Member:
    """A platform participant as seen by the engine (read-only)."""

    id: str
    role: Role
    display_name: str = ""
    receptive: bool = False  # only meaningful for Role.SINGLE
    verified: bool = False


# ---------------------------------------------------------------------------
# PrivacyPolicy
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PrivacyPolicy:
    """Per-member consent settings.

    ``daily_request_limit`` bounds the member's *outgoing* requests in the
    trailing window; it is enforced by the request service, never
    self-reported.
    """

    allow_direct_messages: bool = DEFAULT_ALLOW_DIRECT_MESSAGES
    allow_connection_requests: bool = DEFAULT_ALLOW_CONNECTION_REQUESTS
    daily_request_limit: int = DEFAULT_DAILY_REQUEST_LIMIT
    visible_to_roles: frozenset[Role] = field(default_factory=lambda: ALL_ROLES)

    def __post_init__(self) -> None:
        if isinstance(self.daily_request_limit, bool) or not isinstance(
            self.daily_request_limit, int
        ):
            raise ValidationError(
                "invalid-request-limit", "daily_request_limit must be an integer"
            )
        if not 0 <= self.daily_request_limit <= MAX_DAILY_REQUEST_LIMIT:
            raise ValidationError(
                "invalid-request-limit",
                f"daily_request_limit must be between 0 and {MAX_DAILY_REQUEST_LIMIT}",
            )

    def is_visible_to(self, role: Role) -> bool:
        return role in self.visible_to_roles


def default_policy() -> PrivacyPolicy:
    """Policy applied to members who never saved one."""
    return PrivacyPolicy()


# ---------------------------------------------------------------------------
# ORM adapters
# ---------------------------------------------------------------------------
def member_from_record(row: MemberRecord) -> Member:
    return Member(
        id=row.id,
        role=parse_role(row.role),
        display_name=row.display_name,
        receptive=bool(row.receptive),
        verified=bool(row.verified),
    )


def policy_from_record(row: PrivacyPolicyRecord | None) -> PrivacyPolicy:
    if row is None:
        return default_policy()
    roles = (
        frozenset(parse_role(r) for r in row.visible_to_roles)
        if row.visible_to_roles is not None
        else ALL_ROLES
    )
    return PrivacyPolicy(
        allow_direct_messages=bool(row.allow_direct_messages),
        allow_connection_requests=bool(row.allow_connection_requests),
        daily_request_limit=int(row.daily_request_limit),
        visible_to_roles=roles,
    )

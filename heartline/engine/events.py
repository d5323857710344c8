"""
heartline.engine.events — AuditEvent envelope
==============================================

Every decision the engine makes (allowed or denied, including failures) is
normalised into an :class:`AuditEvent` and handed to the audit emitter.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime

__all__ = ["AuditEvent", "Decision", "EventKind"]


class EventKind(enum.StrEnum):
    TRANSFER_EVALUATED = "transfer_evaluated"
    TRANSFER_EXECUTED = "transfer_executed"
    REQUEST_CREATED = "request_created"
    REQUEST_TRANSITIONED = "request_transitioned"
    MESSAGE_SUBMITTED = "message_submitted"
    CONSENT_CHECKED = "consent_checked"
    POLICY_UPDATED = "policy_updated"


class Decision(enum.StrEnum):
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True, slots=True)
class AuditEvent:
    kind: EventKind
    decision: Decision
    reason: str
    subject_ids: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def involves(self, member_id: str) -> bool:
        return member_id in self.subject_ids

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "decision": self.decision.value,
            "reason": self.reason,
            "subject_ids": list(self.subject_ids),
            "timestamp": self.timestamp.isoformat(),
        }

"""
heartline.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- members              — Read-only mirror of identity-owned member records
- privacy_policies     — Per-member consent and anti-spam policy
- interaction_requests — Contact / mentorship requests (never deleted)
- messages             — Consent-gated direct messages (append-only)
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Heartline ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Role(enum.StrEnum):
    """Closed set of member roles.  Compared by exact value only."""
    SINGLE = "single"
    INTENTIONAL_PARTNER = "intentional_partner"
    MARRIED_LOVE_MODEL = "married_love_model"


class RequestKind(enum.StrEnum):
    CONTACT = "contact"
    MENTORSHIP = "mentorship"


class RequestStatus(enum.StrEnum):
    """``PENDING`` is the only non-terminal state."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BLOCKED = "blocked"


TERMINAL_STATUSES: frozenset[RequestStatus] = frozenset({
    RequestStatus.ACCEPTED,
    RequestStatus.REJECTED,
    RequestStatus.BLOCKED,
})


# ---------------------------------------------------------------------------
# Members — mirrored from the identity subsystem
# ---------------------------------------------------------------------------
class MemberRecord(Base):
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    receptive: Mapped[bool] = mapped_column(Boolean, default=False)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    policy: Mapped[PrivacyPolicyRecord | None] = relationship(
        back_populates="member", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<MemberRecord id={self.id!r} role={self.role}>"


# ---------------------------------------------------------------------------
# PrivacyPolicy — one row per member, absent row means defaults
# ---------------------------------------------------------------------------
class PrivacyPolicyRecord(Base):
    __tablename__ = "privacy_policies"

    member_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("members.id", ondelete="CASCADE"), primary_key=True
    )
    allow_direct_messages: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_connection_requests: Mapped[bool] = mapped_column(Boolean, default=True)
    daily_request_limit: Mapped[int] = mapped_column(Integer, default=5)
    visible_to_roles: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    member: Mapped[MemberRecord] = relationship(back_populates="policy")

    def __repr__(self) -> str:
        return f"<PrivacyPolicyRecord member={self.member_id!r}>"


# ---------------------------------------------------------------------------
# InteractionRequest — contact & mentorship requests
# ---------------------------------------------------------------------------
class InteractionRequest(Base):
    __tablename__ = "interaction_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    purpose: Mapped[str | None] = mapped_column(String(30), nullable=True)
    payload: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        # At most one pending request per ordered (sender, receiver, kind)
        Index(
            "uq_interaction_requests_pending",
            "sender_id",
            "receiver_id",
            "kind",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_interaction_requests_sender_time", "sender_id", "created_at"),
        Index("ix_interaction_requests_receiver_time", "receiver_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<InteractionRequest id={self.id} {self.sender_id!r}->{self.receiver_id!r} "
            f"kind={self.kind} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# Message — append-only direct messages
# ---------------------------------------------------------------------------
class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    sender_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_flagged: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_messages_pair_time", "sender_id", "receiver_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Message id={self.id} {self.sender_id!r}->{self.receiver_id!r} "
            f"flagged={self.is_flagged}>"
        )

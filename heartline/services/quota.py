"""
heartline.services.quota — Outgoing Request Quota
==================================================

Sliding-window counter over ``interaction_requests``: a member may create
at most ``daily_request_limit`` requests (any kind) in the trailing window
(24 hours by default, not a calendar day).

The count runs on the caller's session so it shares the transaction that
inserts the new request.  Requests are never deleted, so the table itself
is the durable record; there is no separate counter.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from heartline.constants import REQUEST_WINDOW_HOURS
from heartline.database.models import InteractionRequest

logger = logging.getLogger(__name__)


class RequestQuota:
    """Sliding-window quota keyed by sender id."""

    def __init__(self, window_hours: int = REQUEST_WINDOW_HOURS) -> None:
        self.window = timedelta(hours=window_hours)

    def _normalize_dt(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def check(
        self, session: Session, sender_id: str, limit: int, now: datetime
    ) -> tuple[bool, dict[str, Any]]:
        """Check if *sender_id* may create another request.

        Returns (allowed, info) where info contains:
          - count: requests already in the window
          - remaining: requests left in the window
          - reset: seconds until the oldest request leaves the window
          - limit: the configured maximum
        """
        cutoff = now - self.window
        timestamps = session.scalars(
            select(InteractionRequest.created_at)
            .where(
                InteractionRequest.sender_id == sender_id,
                InteractionRequest.created_at > cutoff,
            )
            .order_by(InteractionRequest.created_at.asc())
        ).all()

        count = len(timestamps)
        if count >= limit:
            reset = 0
            if timestamps:
                oldest = self._normalize_dt(timestamps[0])
                reset = max(1, int((oldest + self.window - now).total_seconds()) + 1)
            logger.debug(
                "Quota exhausted for %s: %d/%d in window", sender_id, count, limit
            )
            return False, {"count": count, "remaining": 0, "reset": reset, "limit": limit}

        return True, {
            "count": count,
            "remaining": limit - count,
            "reset": int(self.window.total_seconds()),
            "limit": limit,
        }

"""
heartline.services.audit — Audit Emitter & Notification Buffer
===============================================================

Fire-and-forget reporting of every engine decision.  Each event is written
to the ``heartline.audit`` logger and fanned out to registered sinks; the
default sink is an in-memory ring buffer that backs the per-member
notification feed (``GET /api/notifications``).

Emitting never fails the governing decision: a sink that raises is logged
and skipped.  Like the process log, the buffer is not persisted; events
are lost on restart.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable

from heartline.engine.events import AuditEvent, Decision, EventKind

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("heartline.audit")

DEFAULT_CAPACITY = 2000

AuditSink = Callable[[AuditEvent], None]

# Module-level singleton — one per process
_emitter: AuditEmitter | None = None
_lock = threading.Lock()


class AuditBuffer:
    """Thread-safe ring buffer of recent :class:`AuditEvent` objects."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._entries: deque[AuditEvent] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __call__(self, event: AuditEvent) -> None:
        with self._lock:
            self._entries.append(event)

    def recent(self, member_id: str | None = None, tail: int = 50) -> list[dict]:
        """Newest-first events, optionally only those naming *member_id*."""
        with self._lock:
            snapshot = list(self._entries)

        results = [
            e.to_dict() for e in reversed(snapshot)
            if member_id is None or e.involves(member_id)
        ]
        return results[:tail] if tail else results

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)


class AuditEmitter:
    """Structured decision reporter with pluggable sinks."""

    def __init__(self, sinks: list[AuditSink] | None = None) -> None:
        self._sinks: list[AuditSink] = list(sinks or [])

    def add_sink(self, sink: AuditSink) -> None:
        self._sinks.append(sink)

    def emit(
        self,
        kind: EventKind,
        decision: Decision,
        reason: str,
        *subject_ids: str,
    ) -> AuditEvent:
        event = AuditEvent(
            kind=kind,
            decision=decision,
            reason=str(reason),
            subject_ids=tuple(str(s) for s in subject_ids),
        )
        level = logging.INFO if decision is Decision.ALLOWED else logging.WARNING
        try:
            audit_logger.log(
                level,
                "%s %s reason=%s subjects=%s",
                event.kind.value, event.decision.value, event.reason,
                ",".join(event.subject_ids),
            )
        except Exception:
            logger.exception("Audit log write failed for %s", event.kind.value)

        for sink in self._sinks:
            try:
                sink(event)
            except Exception:
                logger.exception("Audit sink %r failed for %s", sink, event.kind.value)
        return event

    def allowed(self, kind: EventKind, reason: str, *subject_ids: str) -> AuditEvent:
        return self.emit(kind, Decision.ALLOWED, reason, *subject_ids)

    def denied(self, kind: EventKind, reason: str, *subject_ids: str) -> AuditEvent:
        return self.emit(kind, Decision.DENIED, reason, *subject_ids)


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
_buffer = AuditBuffer()


def get_buffer() -> AuditBuffer:
    """Return the process-global notification buffer."""
    return _buffer


def get_emitter() -> AuditEmitter:
    """Return (or create) the process-global emitter wired to the buffer."""
    global _emitter
    if _emitter is None:
        with _lock:
            if _emitter is None:
                _emitter = AuditEmitter([_buffer])
    return _emitter

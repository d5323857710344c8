"""
heartline.services.collaborators — External Collaborator Interfaces
====================================================================

The engine never analyses content and never moves balances.  It consumes:

* a :class:`ModerationProvider` that returns a flagged verdict per message;
* a :class:`LedgerExecutor` that performs an authorised allocation.

Any exception raised by a collaborator is surfaced as
:class:`~heartline.errors.DependencyUnavailable` so callers can retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from heartline.errors import DependencyUnavailable

if TYPE_CHECKING:
    from heartline.engine.transfer import AllocationResult, TransferIntent

logger = logging.getLogger(__name__)


@runtime_checkable
class ModerationProvider(Protocol):
    def moderate(self, content: str) -> bool:
        """Return ``True`` if *content* should be flagged."""
        ...


@runtime_checkable
class LedgerExecutor(Protocol):
    def execute(self, intent: TransferIntent, allocation: AllocationResult) -> str | None:
        """Move balances for an authorised transfer; return a ledger reference."""
        ...


class NullModerator:
    """Default moderation provider; never flags.

    Deployments wire a real provider through
    :func:`heartline.api.deps.get_moderator`.
    """

    def moderate(self, content: str) -> bool:
        return False


# ---------------------------------------------------------------------------
# Guarded calls
# ---------------------------------------------------------------------------
def moderate_content(provider: ModerationProvider, content: str) -> bool:
    try:
        return bool(provider.moderate(content))
    except Exception as exc:
        logger.exception("Moderation provider %r failed", provider)
        raise DependencyUnavailable("moderation") from exc


def execute_allocation(
    ledger: LedgerExecutor, intent: TransferIntent, allocation: AllocationResult
) -> str | None:
    try:
        return ledger.execute(intent, allocation)
    except Exception as exc:
        logger.exception("Ledger executor %r failed", ledger)
        raise DependencyUnavailable("ledger") from exc

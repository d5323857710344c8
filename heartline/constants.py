"""
heartline.constants — Shared Constants
========================================

Single source of truth for the recognition tier ladder, the published
allocation model and the request vocabulary.  Import from here instead of
duplicating values in services and routes.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Allocation model (60% recipient / 40% platform)
# ---------------------------------------------------------------------------
RECIPIENT_SHARE_PERCENT = 60
PLATFORM_ACCOUNT_REF = "9161499698 (Opay)"

# Pseudo-recipient representing the whole community, never a member.
COMMUNITY_RECIPIENT_ID = "community"

# ---------------------------------------------------------------------------
# Recognition tier ladder — UI shortcuts, never a resolver constraint
# ---------------------------------------------------------------------------
RECOGNITION_TIERS: dict[str, dict[str, str | int]] = {
    "rising": {
        "label": "Rising Love Model",
        "range": "1–50 Recognitions",
        "amount": 1000,
    },
    "special": {
        "label": "Special Love Model",
        "range": "51–100 Recognitions",
        "amount": 10000,
    },
    "exceptional": {
        "label": "Exceptional Love Model",
        "range": "100+ Recognitions",
        "amount": 50000,
    },
}

# ---------------------------------------------------------------------------
# Requests & privacy
# ---------------------------------------------------------------------------
REQUEST_WINDOW_HOURS = 24

CONTACT_PURPOSES: frozenset[str] = frozenset({"connection", "collaboration", "other"})
DEFAULT_CONTACT_PURPOSE = "connection"

DEFAULT_ALLOW_DIRECT_MESSAGES = False
DEFAULT_ALLOW_CONNECTION_REQUESTS = True
DEFAULT_DAILY_REQUEST_LIMIT = 5
# privacy_policies.daily_request_limit is a 32-bit INTEGER column
MAX_DAILY_REQUEST_LIMIT = 2**31 - 1

MAX_MESSAGE_LENGTH = 4000

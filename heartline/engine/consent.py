"""
heartline.engine.consent — Direct-Message Consent Rule
=======================================================

Messaging is closed by default.  A channel is open only while an accepted
contact request exists between the two members (either direction) *and*
the receiver currently allows direct messages.  The policy is read at send
time, so a receiver who switches DMs off closes the channel immediately.
"""

from __future__ import annotations

from heartline.engine.roles import PrivacyPolicy

CONSENT_REQUIRED = "consent-required"


def can_message(*, accepted_contact_exists: bool, receiver_policy: PrivacyPolicy) -> bool:
    return accepted_contact_exists and receiver_policy.allow_direct_messages

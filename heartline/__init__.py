"""
Heartline — Role-Based Recognition & Consent Engine
=====================================================
Decides whether members of a role-based community may exchange recognition
tokens (and how each transfer is split), whether contact and mentorship
requests may be created or transitioned, and whether a direct message may be
delivered under the receiver's privacy policy.

Package layout::

    heartline/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Tier ladder, allocation model, contact purposes
    ├── errors.py          # Typed error taxonomy (reason codes)
    ├── __main__.py        # python -m heartline → uvicorn
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session / async helpers
    │   └── models.py      # ORM models (members, policies, requests, messages)
    ├── engine/
    │   ├── roles.py       # Role enum, Member / PrivacyPolicy value objects
    │   ├── transfer.py    # Transfer eligibility + 60/40 allocation
    │   ├── requests.py    # Request state machine rules
    │   ├── consent.py     # Direct-message consent rule
    │   └── events.py      # AuditEvent envelope
    ├── services/
    │   ├── member_service.py   # Member / privacy policy store
    │   ├── request_service.py  # Atomic create / transition of requests
    │   ├── quota.py            # Sliding-window outgoing request quota
    │   ├── message_service.py  # Consent gate + moderated message storage
    │   ├── transfer_service.py # Transfer evaluation + ledger hand-off
    │   ├── collaborators.py    # Moderation / ledger interfaces
    │   └── audit.py            # Audit emitter + notification ring buffer
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT → member id, engine, emitter
        └── routes/        # transfers, requests, messages, members
"""

__version__ = "0.1.0"

"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# A valid JWT_SECRET must exist before heartline.api.deps is imported; it
# validates the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import BigInteger, Engine, create_engine, event  # noqa: E402
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from heartline.database.models import Base  # noqa: E402
from heartline.services.audit import AuditBuffer, AuditEmitter  # noqa: E402


# ---------------------------------------------------------------------------
# SQLite renders JSONB as TEXT and BigInteger as INTEGER (so autoincrement
# works on the messages table).
# ---------------------------------------------------------------------------
@compiles(PG_JSONB, "sqlite")
def _compile_jsonb_as_text(type_, compiler, **kw):
    return "TEXT"


@compiles(BigInteger, "sqlite")
def _compile_bigint_as_integer(type_, compiler, **kw):
    return "INTEGER"


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Heartline tables.

    StaticPool shares one connection across threads (TestClient runs sync
    handlers on a worker thread).  The pysqlite driver's own transaction
    handling is switched off so SAVEPOINTs behave as they do on PostgreSQL.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def buffer() -> AuditBuffer:
    return AuditBuffer(capacity=200)


@pytest.fixture
def emitter(buffer: AuditBuffer) -> AuditEmitter:
    """An emitter wired only to the per-test buffer."""
    return AuditEmitter([buffer])


@pytest.fixture
def make_member(db_engine: Engine, emitter: AuditEmitter):
    """Factory: mirror a member in and optionally save a privacy policy.

    ``make_member("alice", "single", receptive=True, allow_direct_messages=True)``
    """
    from heartline.services.member_service import update_policy, upsert_member

    def _make(member_id: str, role: str = "single", *, receptive: bool = False, **policy):
        member = upsert_member(
            db_engine,
            member_id=member_id,
            display_name=member_id.title(),
            role=role,
            receptive=receptive,
        )
        if policy:
            update_policy(
                db_engine,
                actor_id=member_id,
                member_id=member_id,
                emitter=emitter,
                **policy,
            )
        return member

    return _make


def make_token(sub: str) -> str:
    """Create a member JWT.  Usable from any test module."""
    import jwt

    from heartline.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def auth(member_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(member_id)}"}


@pytest.fixture
def client(db_engine: Engine, emitter: AuditEmitter, buffer: AuditBuffer):
    """FastAPI TestClient bound to the in-memory engine and test emitter."""
    from fastapi.testclient import TestClient

    from heartline.api.deps import (
        get_config,
        get_emitter,
        get_engine,
        get_notification_buffer,
    )
    from heartline.api.main import app
    from heartline.config import HeartlineConfig

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_emitter] = lambda: emitter
    app.dependency_overrides[get_notification_buffer] = lambda: buffer
    app.dependency_overrides[get_config] = lambda: HeartlineConfig()
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()

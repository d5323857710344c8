"""
tests/test_database_engine.py — Session Helper Error Translation
==================================================================
Only connectivity failures become a retryable DependencyUnavailable;
data and programming errors surface unchanged and nothing is committed.
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.exc import DataError, InterfaceError, OperationalError

from heartline.database.engine import get_session
from heartline.database.models import MemberRecord
from heartline.errors import DependencyUnavailable


def _add_member(session, member_id="alice"):
    session.add(MemberRecord(id=member_id, display_name=member_id.title(), role="single"))
    session.flush()


def _member_ids(engine):
    with get_session(engine) as session:
        return session.scalars(select(MemberRecord.id)).all()


@pytest.mark.parametrize(
    "error",
    [
        OperationalError("SELECT 1", {}, Exception("server closed the connection")),
        InterfaceError("SELECT 1", {}, Exception("connection already closed")),
    ],
)
def test_connectivity_failure_is_retryable(db_engine, error):
    with pytest.raises(DependencyUnavailable) as exc_info:
        with get_session(db_engine) as session:
            _add_member(session)
            raise error
    assert exc_info.value.retryable
    assert exc_info.value.code == "dependency-unavailable"
    assert exc_info.value.__cause__ is error
    assert _member_ids(db_engine) == []


def test_data_error_propagates_unchanged(db_engine):
    error = DataError("UPDATE privacy_policies", {}, Exception("integer out of range"))
    with pytest.raises(DataError):
        with get_session(db_engine) as session:
            _add_member(session)
            raise error
    assert _member_ids(db_engine) == []


def test_commits_on_success(db_engine):
    with get_session(db_engine) as session:
        _add_member(session)
    assert _member_ids(db_engine) == ["alice"]

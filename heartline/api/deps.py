"""
heartline.api.deps — FastAPI dependency injection
===================================================

Members authenticate with a bearer JWT issued by the identity subsystem;
the ``sub`` claim is the canonical member id that every engine call
receives explicitly.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from heartline.config import HeartlineConfig, load_config
from heartline.database.engine import create_db_engine
from heartline.services.audit import AuditBuffer, AuditEmitter, get_buffer as _get_buffer
from heartline.services.audit import get_emitter as _get_emitter
from heartline.services.collaborators import ModerationProvider, NullModerator

_WEAK_SECRETS = frozenset({
    "heartline-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> HeartlineConfig:
    return load_config(required=False)


def get_emitter() -> AuditEmitter:
    return _get_emitter()


def get_notification_buffer() -> AuditBuffer:
    return _get_buffer()


@lru_cache(maxsize=1)
def get_moderator() -> ModerationProvider:
    return NullModerator()


def get_current_member(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Validate the bearer JWT and return the caller's member id."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    member_id = payload.get("sub")
    if not member_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Token has no subject")
    return str(member_id)


CurrentMember = Annotated[str, Depends(get_current_member)]
EngineDep = Annotated[Engine, Depends(get_engine)]
EmitterDep = Annotated[AuditEmitter, Depends(get_emitter)]
BufferDep = Annotated[AuditBuffer, Depends(get_notification_buffer)]

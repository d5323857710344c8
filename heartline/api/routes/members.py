"""
heartline.api.routes.members — Profiles, privacy policy & notifications
=========================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from heartline.api.deps import BufferDep, CurrentMember, EmitterDep, EngineDep
from heartline.constants import MAX_DAILY_REQUEST_LIMIT
from heartline.services import member_service

router = APIRouter(tags=["members"])


class PrivacyUpdate(BaseModel):
    allow_direct_messages: bool | None = None
    allow_connection_requests: bool | None = None
    daily_request_limit: int | None = Field(None, ge=0, le=MAX_DAILY_REQUEST_LIMIT)
    visible_to_roles: list[str] | None = None


@router.get("/privacy")
def get_privacy(member_id: CurrentMember, engine: EngineDep):
    """The caller's own policy (defaults if never saved)."""
    return member_service.policy_to_dict(member_service.get_policy(engine, member_id))


@router.put("/privacy")
def update_privacy(
    body: PrivacyUpdate,
    member_id: CurrentMember,
    engine: EngineDep,
    emitter: EmitterDep,
):
    policy = member_service.update_policy(
        engine,
        actor_id=member_id,
        member_id=member_id,
        emitter=emitter,
        **body.model_dump(exclude_none=True),
    )
    return member_service.policy_to_dict(policy)


@router.get("/members/{profile_id}")
def get_member_profile(profile_id: str, member_id: CurrentMember, engine: EngineDep):
    return member_service.get_visible_profile(
        engine, viewer_id=member_id, member_id=profile_id
    )


@router.get("/notifications")
def get_notifications(
    member_id: CurrentMember,
    buffer: BufferDep,
    tail: int = Query(50, ge=1, le=500),
):
    """Recent engine decisions naming the caller, newest first."""
    return buffer.recent(member_id, tail=tail)

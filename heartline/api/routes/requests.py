"""
heartline.api.routes.requests — Contact & mentorship request endpoints
========================================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from heartline.api.deps import CurrentMember, EmitterDep, EngineDep, get_config
from heartline.config import HeartlineConfig
from heartline.services import request_service
from heartline.services.quota import RequestQuota

router = APIRouter(prefix="/requests", tags=["requests"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RequestCreate(BaseModel):
    receiver_id: str
    kind: str = "contact"
    purpose: str | None = None
    message: str | None = None  # contact
    goals: str | None = None  # mentorship
    background: str | None = None  # mentorship


class RequestTransition(BaseModel):
    new_status: str


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_request(
    body: RequestCreate,
    member_id: CurrentMember,
    engine: EngineDep,
    emitter: EmitterDep,
    config: Annotated[HeartlineConfig, Depends(get_config)],
):
    request_id = request_service.create_request(
        engine,
        sender_id=member_id,
        receiver_id=body.receiver_id,
        kind=body.kind,
        purpose=body.purpose,
        message=body.message,
        goals=body.goals,
        background=body.background,
        emitter=emitter,
        quota=RequestQuota(config.request_window_hours),
    )
    return {"request_id": request_id}


@router.post("/{request_id}/transition")
def transition_request(
    request_id: int,
    body: RequestTransition,
    member_id: CurrentMember,
    engine: EngineDep,
    emitter: EmitterDep,
):
    new_status = request_service.transition_request(
        engine,
        request_id=request_id,
        actor_id=member_id,
        new_status=body.new_status,
        emitter=emitter,
    )
    return {"ok": True, "status": new_status.value}


@router.get("/incoming")
def incoming_requests(
    member_id: CurrentMember,
    engine: EngineDep,
    kind: str | None = Query(None),
    request_status: str | None = Query(None, alias="status"),
):
    return request_service.list_incoming(
        engine, member_id, kind=kind, status=request_status
    )


@router.get("/outgoing")
def outgoing_requests(
    member_id: CurrentMember,
    engine: EngineDep,
    kind: str | None = Query(None),
    request_status: str | None = Query(None, alias="status"),
):
    return request_service.list_outgoing(
        engine, member_id, kind=kind, status=request_status
    )


@router.get("/{request_id}")
def get_request(request_id: int, member_id: CurrentMember, engine: EngineDep):
    return request_service.get_request(engine, request_id=request_id, viewer_id=member_id)

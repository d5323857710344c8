"""
heartline.api.routes.messages — Consent-gated messaging endpoints
===================================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from heartline.api.deps import CurrentMember, EmitterDep, EngineDep, get_moderator
from heartline.services import message_service
from heartline.services.collaborators import ModerationProvider

router = APIRouter(tags=["messages"])


class MessageSubmit(BaseModel):
    receiver_id: str
    content: str


@router.post("/messages")
def submit_message(
    body: MessageSubmit,
    member_id: CurrentMember,
    engine: EngineDep,
    emitter: EmitterDep,
    moderator: Annotated[ModerationProvider, Depends(get_moderator)],
):
    """Store a direct message; ``stored=false`` means consent is missing."""
    outcome = message_service.submit_message(
        engine,
        sender_id=member_id,
        receiver_id=body.receiver_id,
        content=body.content,
        moderator=moderator,
        emitter=emitter,
    )
    return outcome.to_dict()


@router.get("/messages/{other_id}")
def get_thread(
    other_id: str,
    member_id: CurrentMember,
    engine: EngineDep,
    limit: int | None = Query(None, ge=1, le=500),
):
    return message_service.list_thread(
        engine, viewer_id=member_id, other_id=other_id, limit=limit
    )


@router.get("/consent/{other_id}")
def get_consent(
    other_id: str, member_id: CurrentMember, engine: EngineDep, emitter: EmitterDep
):
    allowed = message_service.can_message(engine, member_id, other_id, emitter=emitter)
    return {"can_message": allowed}

"""
heartline.api.routes.transfers — Transfer evaluation endpoints
================================================================
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from heartline.api.deps import CurrentMember, EmitterDep, EngineDep, get_config
from heartline.config import HeartlineConfig
from heartline.constants import RECOGNITION_TIERS
from heartline.services import transfer_service

router = APIRouter(tags=["transfers"])


class TransferEvaluate(BaseModel):
    receiver_id: str
    amount: int
    tier: str | None = None


# ---------------------------------------------------------------------------
# POST /transfers/evaluate
# ---------------------------------------------------------------------------
@router.post("/transfers/evaluate")
def evaluate_transfer(
    body: TransferEvaluate,
    member_id: CurrentMember,
    engine: EngineDep,
    emitter: EmitterDep,
    config: Annotated[HeartlineConfig, Depends(get_config)],
):
    """Authorise (but never execute) a recognition-token transfer."""
    decision = transfer_service.evaluate(
        engine,
        sender_id=member_id,
        receiver_id=body.receiver_id,
        amount=body.amount,
        emitter=emitter,
        config=config,
    )
    if not decision.allowed:
        return {
            "allowed": False,
            "reason": decision.reason.value,
            "message": decision.message,
        }
    allocation = decision.allocation
    return {
        "allowed": True,
        "recipient_share": allocation.recipient_share,
        "platform_share": allocation.platform_share,
        "platform_account_ref": allocation.platform_account_ref,
    }


# ---------------------------------------------------------------------------
# GET /tiers
# ---------------------------------------------------------------------------
@router.get("/tiers")
def get_tiers(config: Annotated[HeartlineConfig, Depends(get_config)]):
    """Recognition tier ladder and the published allocation model."""
    return {
        "tiers": [{"key": key, **tier} for key, tier in RECOGNITION_TIERS.items()],
        "allocation": {
            "recipient_percent": config.recipient_share_percent,
            "platform_percent": 100 - config.recipient_share_percent,
            "platform_account_ref": config.platform_account_ref,
        },
    }

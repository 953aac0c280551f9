"""
highroller.api.routes.games — Game session intake
=================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import Engine

from highroller.api.deps import get_engine, get_identity
from highroller.database.engine import run_db
from highroller.engine.tokens import Identity
from highroller.services import game_service

router = APIRouter(prefix="/games", tags=["games"])


class GameSessionCreate(BaseModel):
    type: str
    balance_start: Any = None
    balance_end: Any = None
    total_bet: Any = 0
    rounds_played: int = 0
    session_start: datetime | None = None
    session_end: datetime | None = None


@router.post("", status_code=201)
async def record_game(
    body: GameSessionCreate,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    """Store a finished session for the calling account."""
    record = game_service.GameRecord(
        owner_id=identity.user_id,
        game_type=body.type,
        balance_at_start=body.balance_start,
        balance_at_end=body.balance_end,
        total_wagered=body.total_bet,
        rounds_played=body.rounds_played,
        started_at=body.session_start,
        ended_at=body.session_end,
    )
    view = await run_db(game_service.record_session, engine, record)
    return view.to_dict()

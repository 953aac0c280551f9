"""
highroller.api.routes.leaderboard — Public leaderboards
=======================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from highroller.api.deps import get_config, get_engine
from highroller.config import HighrollerConfig
from highroller.database.engine import run_db
from highroller.errors import NotFoundError
from highroller.services import stats_service

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

_BOARDS = {
    "balance": stats_service.top_by_balance,
    "games": stats_service.top_by_games_played,
    "wins": stats_service.top_by_wins,
}


@router.get("/{board}")
async def leaderboard(
    board: str,
    count: int | None = Query(None),
    min_games: int = Query(1),
    cfg: HighrollerConfig = Depends(get_config),
    engine: Engine = Depends(get_engine),
):
    """Top *count* accounts by ``balance``, ``games``, ``wins`` or ``winrate``."""
    if count is None:
        count = cfg.leaderboard_default_count
    if board == "winrate":
        entries = await run_db(stats_service.top_by_win_rate, engine, count, min_games)
    elif board in _BOARDS:
        entries = await run_db(_BOARDS[board], engine, count)
    else:
        raise NotFoundError(f"Unknown leaderboard {board!r}", code="unknown_leaderboard")
    return [e.to_dict() for e in entries]

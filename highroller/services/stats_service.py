"""
highroller.services.stats_service — Player Statistics & Leaderboards
====================================================================

Per-player aggregates come from :func:`highroller.engine.stats.summarize`.
Leaderboards aggregate in SQL and join ``users`` so sessions whose owner
has been removed drop out on their own.

Every leaderboard is ordered by its metric descending, then by account id
ascending, so equal scores always list in the same order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import case, func, select

from highroller.constants import DEFAULT_RECENT_GAMES
from highroller.database.engine import get_session
from highroller.database.models import GameSession, User
from highroller.engine.money import from_minor
from highroller.engine.stats import PlayerStats, summarize, win_rate
from highroller.errors import account_not_found, invalid_parameter
from highroller.services.views import GameSessionView

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    account_id: str
    username: str
    picture_path: str
    value: Decimal | int | float

    def to_dict(self) -> dict:
        value = float(self.value) if isinstance(self.value, Decimal) else self.value
        return {
            "rank": self.rank,
            "id": self.account_id,
            "username": self.username,
            "picture_path": self.picture_path,
            "value": value,
        }


def _positive_int(value: object, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise invalid_parameter(name)
    return value


def _won():
    won = GameSession.balance_at_end_minor > GameSession.balance_at_start_minor
    return case((won, 1), else_=0)


def _entries(rows) -> list[LeaderboardEntry]:
    return [
        LeaderboardEntry(
            rank=i,
            account_id=user_id,
            username=username,
            picture_path=picture_path,
            value=value,
        )
        for i, (user_id, username, picture_path, value) in enumerate(rows, start=1)
    ]


# ---------------------------------------------------------------------------
# Per-player
# ---------------------------------------------------------------------------
def compute_stats(engine, user_id: str) -> PlayerStats:
    """Games played, wins, total earnings and win rate for one account."""
    with get_session(engine) as session:
        if session.get(User, user_id) is None:
            raise account_not_found()
        rows = session.scalars(
            select(GameSession).where(GameSession.owner_id == user_id)
        ).all()
        return summarize(GameSessionView.from_row(r) for r in rows)


def recent_games(
    engine, user_id: str, count: int = DEFAULT_RECENT_GAMES
) -> list[GameSessionView]:
    count = _positive_int(count, "count")
    with get_session(engine) as session:
        if session.get(User, user_id) is None:
            raise account_not_found()
        rows = session.scalars(
            select(GameSession)
            .where(GameSession.owner_id == user_id)
            .order_by(GameSession.started_at.desc(), GameSession.id)
            .limit(count)
        ).all()
        return [GameSessionView.from_row(r) for r in rows]


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------
def top_by_balance(engine, count: int) -> list[LeaderboardEntry]:
    count = _positive_int(count, "count")
    with get_session(engine) as session:
        rows = session.execute(
            select(User.id, User.username, User.picture_path, User.balance_minor)
            .order_by(User.balance_minor.desc(), User.id)
            .limit(count)
        ).all()
    return _entries((uid, name, pic, from_minor(cents)) for uid, name, pic, cents in rows)


def top_by_games_played(engine, count: int) -> list[LeaderboardEntry]:
    count = _positive_int(count, "count")
    games = func.count(GameSession.id).label("games")
    with get_session(engine) as session:
        rows = session.execute(
            select(User.id, User.username, User.picture_path, games)
            .join(GameSession, GameSession.owner_id == User.id)
            .group_by(User.id, User.username, User.picture_path)
            .order_by(games.desc(), User.id)
            .limit(count)
        ).all()
    return _entries(rows)


def top_by_wins(engine, count: int) -> list[LeaderboardEntry]:
    count = _positive_int(count, "count")
    wins = func.sum(_won()).label("wins")
    with get_session(engine) as session:
        rows = session.execute(
            select(User.id, User.username, User.picture_path, wins)
            .join(GameSession, GameSession.owner_id == User.id)
            .group_by(User.id, User.username, User.picture_path)
            .order_by(wins.desc(), User.id)
            .limit(count)
        ).all()
    return _entries((uid, name, pic, int(value or 0)) for uid, name, pic, value in rows)


def top_by_win_rate(engine, count: int, min_games: int = 1) -> list[LeaderboardEntry]:
    """Highest win rate among accounts with at least *min_games* sessions.

    The ratio is computed in Python from SQL-side counts so integer
    division never truncates it.
    """
    count = _positive_int(count, "count")
    min_games = _positive_int(min_games, "minimum games")
    games = func.count(GameSession.id)
    wins = func.sum(_won())
    with get_session(engine) as session:
        rows = session.execute(
            select(User.id, User.username, User.picture_path, games, wins)
            .join(GameSession, GameSession.owner_id == User.id)
            .group_by(User.id, User.username, User.picture_path)
            .having(games >= min_games)
        ).all()

    scored = [
        (uid, name, pic, win_rate(int(w or 0), int(g)))
        for uid, name, pic, g, w in rows
    ]
    scored.sort(key=lambda r: (-r[3], r[0]))
    return _entries(scored[:count])

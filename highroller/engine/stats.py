"""
highroller.engine.stats — Win/Loss Aggregation
==============================================

Pure functions over game-session snapshots; no database access.  The
stats service loads rows and hands them here, so the arithmetic is
testable without SQLAlchemy.

A session is a **win** when it ends with more balance than it started
with.  Profit is ``balance_at_end - balance_at_start`` and may be negative.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


class SessionLike(Protocol):
    balance_at_start: Decimal
    balance_at_end: Decimal


@dataclass(frozen=True, slots=True)
class PlayerStats:
    games_played: int
    wins: int
    total_earnings: Decimal
    win_rate: float

    def to_dict(self) -> dict:
        return {
            "games_played": self.games_played,
            "wins": self.wins,
            "total_earnings": float(self.total_earnings),
            "win_rate": self.win_rate,
        }


def is_win(session: SessionLike) -> bool:
    return _money(session.balance_at_end) > _money(session.balance_at_start)


def profit(session: SessionLike) -> Decimal:
    return _money(session.balance_at_end) - _money(session.balance_at_start)


def win_rate(wins: int, games_played: int) -> float:
    """``wins / games_played``, or ``0.0`` when nothing was played."""
    if games_played <= 0:
        return 0.0
    return wins / games_played


def summarize(sessions: Iterable[SessionLike]) -> PlayerStats:
    games = 0
    wins = 0
    earnings = Decimal("0")
    for s in sessions:
        games += 1
        if is_win(s):
            wins += 1
        earnings += profit(s)
    return PlayerStats(
        games_played=games,
        wins=wins,
        total_earnings=earnings,
        win_rate=win_rate(wins, games),
    )


def _money(value: Decimal | int | float | None) -> Decimal:
    # NULL snapshots count as zero
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

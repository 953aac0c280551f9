"""
highroller.services.game_service — Game Session Records
=======================================================

Write side of the ``game_sessions`` table.  Game engines report a finished
session here; the core never edits a record afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from highroller.constants import GameType
from highroller.database.engine import get_session
from highroller.database.models import GameSession, User
from highroller.engine.money import CENT, MAX_AMOUNT, to_decimal, to_minor
from highroller.errors import ValidationError, account_not_found
from highroller.services.views import GameSessionView

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GameRecord:
    """One finished session as reported by a game engine."""

    owner_id: str
    game_type: str
    balance_at_start: object
    balance_at_end: object
    total_wagered: object = 0
    rounds_played: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _money_field(value: object, name: str):
    parsed = to_decimal(value)
    if parsed is None or parsed < 0 or parsed > MAX_AMOUNT:
        raise ValidationError(f"Invalid {name}", code="invalid_parameter")
    return parsed.quantize(CENT)


def record_session(engine, record: GameRecord) -> GameSessionView:
    """Persist *record* and return it.

    Raises
    ------
    ValidationError
        Unknown game type, negative rounds or malformed money fields.
    NotFoundError
        The owner account does not exist.
    """
    try:
        game_type = GameType(record.game_type).value
    except ValueError:
        raise ValidationError(
            f"Unknown game type {record.game_type!r}", code="invalid_game_type"
        ) from None

    rounds = record.rounds_played
    if isinstance(rounds, bool) or not isinstance(rounds, int) or rounds < 0:
        raise ValidationError("Invalid rounds played", code="invalid_parameter")

    start = _money_field(record.balance_at_start, "starting balance")
    end = _money_field(record.balance_at_end, "ending balance")
    wagered = _money_field(record.total_wagered, "total bet")

    ended_at = _aware(record.ended_at) or datetime.now(UTC)
    started_at = _aware(record.started_at) or ended_at
    if started_at > ended_at:
        raise ValidationError("Session ends before it starts", code="invalid_parameter")

    with get_session(engine) as session:
        if session.get(User, record.owner_id) is None:
            raise account_not_found()
        row = GameSession(
            game_type=game_type,
            owner_id=record.owner_id,
            started_at=started_at,
            ended_at=ended_at,
            total_wagered_minor=to_minor(wagered),
            balance_at_start_minor=to_minor(start),
            balance_at_end_minor=to_minor(end),
            rounds_played=rounds,
        )
        session.add(row)
        session.flush()
        view = GameSessionView.from_row(row)

    logger.info(
        "Recorded %s session %s for %s (%s → %s)",
        game_type, view.id, record.owner_id, start, end,
    )
    return view

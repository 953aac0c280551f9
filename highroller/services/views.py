"""
highroller.services.views — Detached Read Models
================================================

Services never hand live ORM objects to callers; they return these frozen
snapshots, built while the session is still open.  Routes turn them into
JSON with ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from highroller.database.models import Cosmetic, Friendship, GameSession, User, UserCosmetic
from highroller.engine.money import from_minor


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True, slots=True)
class CosmeticView:
    id: str
    name: str
    category: str
    resource_path: str | None
    price: Decimal

    @classmethod
    def from_row(cls, row: Cosmetic) -> CosmeticView:
        return cls(
            id=row.id,
            name=row.name,
            category=row.category,
            resource_path=row.resource_path,
            price=from_minor(row.price_minor),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "resource_path": self.resource_path,
            "price": float(self.price),
        }


@dataclass(frozen=True, slots=True)
class AccountView:
    id: str
    username: str
    email: str
    picture_path: str
    is_admin: bool
    balance: Decimal
    joined_at: datetime | None
    equipped_border_id: str | None
    equipped_banner_id: str | None
    cosmetic_ids: tuple[str, ...] = ()
    friend_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "picture_path": self.picture_path,
            "is_admin": self.is_admin,
            "balance": float(self.balance),
            "joined_at": _iso(self.joined_at),
            "border": self.equipped_border_id,
            "banner": self.equipped_banner_id,
            "cosmetics": list(self.cosmetic_ids),
            "friends": list(self.friend_ids),
        }


def account_view(session: Session, user: User) -> AccountView:
    """Snapshot *user* together with its ownership and friend sets."""
    cosmetic_ids = session.scalars(
        select(UserCosmetic.cosmetic_id)
        .where(UserCosmetic.user_id == user.id)
        .order_by(UserCosmetic.acquired_at, UserCosmetic.cosmetic_id)
    ).all()
    friend_ids = session.scalars(
        select(Friendship.friend_id)
        .where(Friendship.user_id == user.id)
        .order_by(Friendship.created_at, Friendship.friend_id)
    ).all()
    return AccountView(
        id=user.id,
        username=user.username,
        email=user.email,
        picture_path=user.picture_path,
        is_admin=user.is_admin,
        balance=from_minor(user.balance_minor),
        joined_at=user.joined_at,
        equipped_border_id=user.equipped_border_id,
        equipped_banner_id=user.equipped_banner_id,
        cosmetic_ids=tuple(cosmetic_ids),
        friend_ids=tuple(friend_ids),
    )


@dataclass(frozen=True, slots=True)
class GameSessionView:
    id: str
    game_type: str
    owner_id: str | None
    started_at: datetime | None
    ended_at: datetime | None
    total_wagered: Decimal
    balance_at_start: Decimal
    balance_at_end: Decimal
    rounds_played: int

    @classmethod
    def from_row(cls, row: GameSession) -> GameSessionView:
        return cls(
            id=row.id,
            game_type=row.game_type,
            owner_id=row.owner_id,
            started_at=row.started_at,
            ended_at=row.ended_at,
            total_wagered=from_minor(row.total_wagered_minor),
            balance_at_start=from_minor(row.balance_at_start_minor),
            balance_at_end=from_minor(row.balance_at_end_minor),
            rounds_played=row.rounds_played,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.game_type,
            "user_id": self.owner_id,
            "session_start": _iso(self.started_at),
            "session_end": _iso(self.ended_at),
            "total_bet": float(self.total_wagered),
            "balance_start": float(self.balance_at_start),
            "balance_end": float(self.balance_at_end),
            "rounds_played": self.rounds_played,
        }

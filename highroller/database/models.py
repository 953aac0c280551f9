"""
highroller.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users            — Player accounts (credentials, balance, equip slots)
- cosmetics        — Admin-managed catalogue of purchasable items
- user_cosmetics   — Ownership: one row per (user, cosmetic), never twice
- friendships      — One-directional friend edges (user → friend)
- game_sessions    — Append-only session records written by gameplay
- revoked_tokens   — Durable revocation list (optional backend)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from highroller.constants import DEFAULT_PICTURE_PATH

def new_id() -> str:
    """Opaque identifier used for every primary key."""
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Highroller ORM models."""


# ---------------------------------------------------------------------------
# Users: one row per player account
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    picture_path: Mapped[str] = mapped_column(
        String(255), nullable=False, default=DEFAULT_PICTURE_PATH
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Currency columns hold integer cents; see highroller.engine.money
    balance_minor: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    equipped_border_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("cosmetics.id", ondelete="SET NULL"), default=None
    )
    equipped_banner_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("cosmetics.id", ondelete="SET NULL"), default=None
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    owned: Mapped[list[UserCosmetic]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    friendships: Mapped[list[Friendship]] = relationship(
        foreign_keys="Friendship.user_id", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("balance_minor >= 0", name="ck_users_balance_non_negative"),
        Index("ix_users_balance_desc", "balance_minor"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.username!r} balance_minor={self.balance_minor}>"


# ---------------------------------------------------------------------------
# Cosmetics: catalogue items
# ---------------------------------------------------------------------------
class Cosmetic(Base):
    __tablename__ = "cosmetics"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(10), nullable=False)  # frame, banner, emote
    resource_path: Mapped[str | None] = mapped_column(String(255), default=None)
    price_minor: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("price_minor >= 0", name="ck_cosmetics_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Cosmetic id={self.id} name={self.name!r} category={self.category!r}>"


# ---------------------------------------------------------------------------
# UserCosmetic: ownership set
# ---------------------------------------------------------------------------
class UserCosmetic(Base):
    """A player owns a cosmetic.  The composite PK enforces at-most-once."""
    __tablename__ = "user_cosmetics"

    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    cosmetic_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("cosmetics.id", ondelete="CASCADE"), primary_key=True
    )
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="owned")
    cosmetic: Mapped[Cosmetic] = relationship()

    def __repr__(self) -> str:
        return f"<UserCosmetic user={self.user_id} cosmetic={self.cosmetic_id}>"


# ---------------------------------------------------------------------------
# Friendship: one-directional edge
# ---------------------------------------------------------------------------
class Friendship(Base):
    __tablename__ = "friendships"

    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    friend_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
        Index("ix_friendships_friend", "friend_id"),
    )

    def __repr__(self) -> str:
        return f"<Friendship {self.user_id} → {self.friend_id}>"


# ---------------------------------------------------------------------------
# GameSession: append-only gameplay record
# ---------------------------------------------------------------------------
class GameSession(Base):
    __tablename__ = "game_sessions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    game_type: Mapped[str] = mapped_column(String(20), nullable=False)  # plinko, roulette, blackjack
    owner_id: Mapped[str | None] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_wagered_minor: Mapped[int] = mapped_column(BigInteger, default=0)
    balance_at_start_minor: Mapped[int] = mapped_column(BigInteger, default=0)
    balance_at_end_minor: Mapped[int] = mapped_column(BigInteger, default=0)
    rounds_played: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        Index("ix_game_sessions_owner_started", "owner_id", "started_at"),
    )

    def __repr__(self) -> str:
        return f"<GameSession id={self.id} type={self.game_type!r} owner={self.owner_id}>"


# ---------------------------------------------------------------------------
# RevokedToken: durable revocation list
# ---------------------------------------------------------------------------
class RevokedToken(Base):
    """Logged-out tokens, keyed by SHA-256 of the raw token string.

    Rows are pruned once ``expires_at`` passes — an expired token is
    rejected by signature validation anyway.
    """
    __tablename__ = "revoked_tokens"

    token_digest: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_revoked_tokens_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<RevokedToken digest={self.token_digest[:12]}… expires={self.expires_at}>"

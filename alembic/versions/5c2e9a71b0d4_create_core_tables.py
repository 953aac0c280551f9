"""Create accounts, catalogue, ownership, friends, sessions, revocations

Revision ID: 5c2e9a71b0d4
Revises:
Create Date: 2026-10-19 10:12:31.418220

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e9a71b0d4'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Currency columns hold integer cents
MONEY = sa.BigInteger()


def upgrade() -> None:
    """Create the six core tables."""

    # --- cosmetics ---
    op.create_table(
        "cosmetics",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("category", sa.String(10), nullable=False),
        sa.Column("resource_path", sa.String(255), nullable=True),
        sa.Column("price_minor", MONEY, nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("price_minor >= 0", name="ck_cosmetics_price_non_negative"),
    )

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("picture_path", sa.String(255), nullable=False, server_default="default"),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("balance_minor", MONEY, nullable=False, server_default="0"),
        sa.Column(
            "equipped_border_id",
            sa.String(32),
            sa.ForeignKey("cosmetics.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "equipped_banner_id",
            sa.String(32),
            sa.ForeignKey("cosmetics.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "joined_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("balance_minor >= 0", name="ck_users_balance_non_negative"),
    )
    op.create_index("ix_users_balance_desc", "users", ["balance_minor"])

    # --- user_cosmetics ---
    op.create_table(
        "user_cosmetics",
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "cosmetic_id",
            sa.String(32),
            sa.ForeignKey("cosmetics.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "acquired_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # --- friendships ---
    op.create_table(
        "friendships",
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "friend_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
    )
    op.create_index("ix_friendships_friend", "friendships", ["friend_id"])

    # --- game_sessions ---
    op.create_table(
        "game_sessions",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("game_type", sa.String(20), nullable=False),
        sa.Column(
            "owner_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_wagered_minor", MONEY, server_default="0"),
        sa.Column("balance_at_start_minor", MONEY, server_default="0"),
        sa.Column("balance_at_end_minor", MONEY, server_default="0"),
        sa.Column("rounds_played", sa.Integer, server_default="0"),
    )
    op.create_index(
        "ix_game_sessions_owner_started", "game_sessions", ["owner_id", "started_at"]
    )

    # --- revoked_tokens ---
    op.create_table(
        "revoked_tokens",
        sa.Column("token_digest", sa.String(64), primary_key=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "revoked_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_revoked_tokens_expires_at", "revoked_tokens", ["expires_at"])


def downgrade() -> None:
    """Drop every core table (reverse dependency order)."""
    op.drop_index("ix_revoked_tokens_expires_at", table_name="revoked_tokens")
    op.drop_table("revoked_tokens")
    op.drop_index("ix_game_sessions_owner_started", table_name="game_sessions")
    op.drop_table("game_sessions")
    op.drop_index("ix_friendships_friend", table_name="friendships")
    op.drop_table("friendships")
    op.drop_table("user_cosmetics")
    op.drop_index("ix_users_balance_desc", table_name="users")
    op.drop_table("users")
    op.drop_table("cosmetics")

"""
highroller.constants — Shared Constants
========================================

Single source of truth for cosmetic categories, equip slots and game
types.  Import from here instead of duplicating string literals in
services and routes.
"""

from __future__ import annotations

import enum


class CosmeticCategory(enum.StrEnum):
    """Kinds of cosmetic item; the category decides which slot it fits."""
    FRAME = "frame"
    BANNER = "banner"
    EMOTE = "emote"


class EquipSlot(enum.StrEnum):
    """Profile positions that hold at most one cosmetic each."""
    BORDER = "border"
    BANNER = "banner"


class GameType(enum.StrEnum):
    """Closed set of games that produce session records."""
    PLINKO = "plinko"
    ROULETTE = "roulette"
    BLACKJACK = "blackjack"


# Which category a slot accepts.  Emotes have no slot.
SLOT_CATEGORY: dict[EquipSlot, CosmeticCategory] = {
    EquipSlot.BORDER: CosmeticCategory.FRAME,
    EquipSlot.BANNER: CosmeticCategory.BANNER,
}

# Column on ``users`` that backs each slot.
SLOT_COLUMN: dict[EquipSlot, str] = {
    EquipSlot.BORDER: "equipped_border_id",
    EquipSlot.BANNER: "equipped_banner_id",
}

DEFAULT_PICTURE_PATH = "default"
DEFAULT_RECENT_GAMES = 3


class _Unset:
    """Marker for "field not provided" in partial updates (``None`` is a value)."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()

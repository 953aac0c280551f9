"""
highroller.services.inventory_service — Equip / Unequip
=======================================================

A player can show one ``frame`` in the **border** slot and one ``banner``
in the **banner** slot.  Equipping requires the item to exist, to match the
slot's category and to be owned.  Emotes are owned but never equipped.
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from highroller.constants import SLOT_CATEGORY, SLOT_COLUMN, EquipSlot
from highroller.database.engine import get_session
from highroller.database.models import Cosmetic, User, UserCosmetic
from highroller.errors import (
    OwnershipError,
    ValidationError,
    account_not_found,
    item_not_found,
)
from highroller.services.views import CosmeticView

logger = logging.getLogger(__name__)


def parse_slot(slot: str | EquipSlot) -> EquipSlot:
    try:
        return EquipSlot(slot)
    except ValueError:
        raise ValidationError(
            f"Unknown slot {slot!r}; expected one of "
            f"{', '.join(s.value for s in EquipSlot)}",
            code="invalid_slot",
        ) from None


def equip(engine, user_id: str, item_id: str, slot: str | EquipSlot) -> str:
    """Put *item_id* into *slot* and return the equipped id.

    Checks run in this order: item exists → category fits → item owned.

    Raises
    ------
    ValidationError
        Unknown slot or missing item id.
    NotFoundError
        ``item_not_found`` / ``account_not_found``.
    OwnershipError
        ``category_mismatch`` or ``not_owned``.
    """
    slot = parse_slot(slot)
    if not item_id:
        raise ValidationError(f"Please provide a {slot.value} id", code="missing_item")

    with get_session(engine) as session:
        item = session.get(Cosmetic, item_id)
        if item is None:
            raise item_not_found()

        expected = SLOT_CATEGORY[slot]
        if item.category != expected:
            raise OwnershipError(
                f"Item is not a {slot.value}", code="category_mismatch"
            )

        user = session.get(User, user_id)
        if user is None:
            raise account_not_found()

        if session.get(UserCosmetic, (user_id, item_id)) is None:
            raise OwnershipError(
                f"User does not own this {slot.value}", code="not_owned"
            )

        setattr(user, SLOT_COLUMN[slot], item_id)

    logger.info("Account %s equipped %s in %s slot", user_id, item_id, slot.value)
    return item_id


def unequip(engine, user_id: str, slot: str | EquipSlot) -> None:
    """Clear *slot*.  Clearing an empty slot is a no-op."""
    slot = parse_slot(slot)
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise account_not_found()
        setattr(user, SLOT_COLUMN[slot], None)

    logger.info("Account %s cleared %s slot", user_id, slot.value)


def list_owned(engine, user_id: str) -> list[CosmeticView]:
    with get_session(engine) as session:
        if session.get(User, user_id) is None:
            raise account_not_found()
        rows = session.scalars(
            select(Cosmetic)
            .join(UserCosmetic, UserCosmetic.cosmetic_id == Cosmetic.id)
            .where(UserCosmetic.user_id == user_id)
            .order_by(UserCosmetic.acquired_at, Cosmetic.id)
        ).all()
        return [CosmeticView.from_row(r) for r in rows]

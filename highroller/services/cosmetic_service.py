"""
highroller.services.cosmetic_service — Cosmetic Catalogue
=========================================================

Admin CRUD for purchasable cosmetics.  Names are unique.

Deleting a cosmetic cascades: it disappears from every owned set and any
equip slot showing it is cleared, so no account is left pointing at an
item that no longer exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from highroller.constants import UNSET, CosmeticCategory
from highroller.database.engine import get_session
from highroller.database.models import Cosmetic, User, UserCosmetic
from highroller.engine.money import (
    CENT,
    MAX_AMOUNT,
    minor_ceiling,
    minor_floor,
    parse_price,
    to_decimal,
    to_minor,
)
from highroller.errors import ConflictError, ValidationError, item_not_found
from highroller.services.views import CosmeticView

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CosmeticUpdate:
    """Partial catalogue update — ``UNSET`` fields are left alone."""

    name: Any = UNSET
    category: Any = UNSET
    resource_path: Any = UNSET
    price: Any = UNSET

    def provided(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


def _parse_category(value: object) -> str:
    try:
        return CosmeticCategory(value).value
    except ValueError:
        raise ValidationError(
            f"Invalid category {value!r}; expected one of "
            f"{', '.join(c.value for c in CosmeticCategory)}",
            code="invalid_category",
        ) from None


def _parse_name(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Please provide a cosmetic name", code="missing_name")
    return value.strip()


def _price_bound(value: object, name: str) -> Decimal:
    bound = to_decimal(value)
    if bound is None:
        raise ValidationError(f"Invalid {name}", code="invalid_parameter")
    # every stored price lies in [0, MAX_AMOUNT]
    return min(max(bound, Decimal("0")), MAX_AMOUNT + CENT)


def _duplicate_name(name: str) -> ConflictError:
    return ConflictError(
        f'Cosmetic with name "{name}" already exists.', code="duplicate_name"
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_cosmetic(engine, item_id: str) -> CosmeticView:
    with get_session(engine) as session:
        row = session.get(Cosmetic, item_id)
        if row is None:
            raise item_not_found()
        return CosmeticView.from_row(row)


def get_cosmetic_by_name(engine, name: str) -> CosmeticView:
    with get_session(engine) as session:
        row = session.scalar(select(Cosmetic).where(Cosmetic.name == name))
        if row is None:
            raise item_not_found()
        return CosmeticView.from_row(row)


def list_cosmetics(
    engine,
    *,
    min_price: object = None,
    max_price: object = None,
    category: str | None = None,
) -> list[CosmeticView]:
    """List the catalogue, optionally bounded by price and category."""
    query = select(Cosmetic)
    if min_price is not None:
        low = _price_bound(min_price, "min price")
        query = query.where(Cosmetic.price_minor >= minor_ceiling(low))
    if max_price is not None:
        high = _price_bound(max_price, "max price")
        query = query.where(Cosmetic.price_minor <= minor_floor(high))
    if category is not None:
        query = query.where(Cosmetic.category == _parse_category(category))

    with get_session(engine) as session:
        rows = session.scalars(query.order_by(Cosmetic.price_minor, Cosmetic.name)).all()
        return [CosmeticView.from_row(r) for r in rows]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def create_cosmetic(
    engine,
    *,
    name: str,
    category: str,
    price: object = 0,
    resource_path: str | None = None,
    actor_id: str | None = None,
) -> CosmeticView:
    """Add an item to the catalogue.

    Raises
    ------
    ValidationError
        Missing name, unknown category, negative/malformed price.
    ConflictError
        ``duplicate_name`` if the name is taken.
    """
    name = _parse_name(name)
    category = _parse_category(category)
    value: Decimal = parse_price(price)

    try:
        with get_session(engine) as session:
            if session.scalar(select(Cosmetic.id).where(Cosmetic.name == name)):
                raise _duplicate_name(name)
            row = Cosmetic(
                name=name,
                category=category,
                resource_path=resource_path,
                price_minor=to_minor(value),
            )
            session.add(row)
            session.flush()
            view = CosmeticView.from_row(row)
    except IntegrityError as exc:
        raise _duplicate_name(name) from exc

    logger.info("Cosmetic created by %s: %s (%s, %s)", actor_id, view.id, name, category)
    return view


def update_cosmetic(
    engine,
    item_id: str,
    changes: CosmeticUpdate,
    *,
    actor_id: str | None = None,
) -> CosmeticView:
    """Apply a partial update to a catalogue item."""
    values = changes.provided()
    if "name" in values:
        values["name"] = _parse_name(values["name"])
    if "category" in values:
        values["category"] = _parse_category(values["category"])
    if "price" in values:
        values["price_minor"] = to_minor(parse_price(values.pop("price")))

    try:
        with get_session(engine) as session:
            row = session.get(Cosmetic, item_id)
            if row is None:
                raise item_not_found()
            new_name = values.get("name")
            if new_name is not None and new_name != row.name:
                taken = session.scalar(
                    select(Cosmetic.id).where(
                        Cosmetic.name == new_name, Cosmetic.id != item_id
                    )
                )
                if taken is not None:
                    raise _duplicate_name(new_name)
            for key, value in values.items():
                setattr(row, key, value)
            session.flush()
            view = CosmeticView.from_row(row)
    except IntegrityError as exc:
        raise _duplicate_name(str(values.get("name"))) from exc

    logger.info("Cosmetic %s updated by %s fields=%s", item_id, actor_id, sorted(values))
    return view


def delete_cosmetic(engine, item_id: str, *, actor_id: str | None = None) -> None:
    """Remove an item from the catalogue, owned sets and equip slots."""
    with get_session(engine) as session:
        row = session.get(Cosmetic, item_id)
        if row is None:
            raise item_not_found()
        session.execute(
            update(User)
            .where(User.equipped_border_id == item_id)
            .values(equipped_border_id=None)
            .execution_options(synchronize_session=False)
        )
        session.execute(
            update(User)
            .where(User.equipped_banner_id == item_id)
            .values(equipped_banner_id=None)
            .execution_options(synchronize_session=False)
        )
        owners = session.execute(
            delete(UserCosmetic)
            .where(UserCosmetic.cosmetic_id == item_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        session.delete(row)

    logger.info(
        "Cosmetic %s deleted by %s (removed from %d inventories)",
        item_id, actor_id, owners or 0,
    )

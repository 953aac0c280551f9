"""
highroller.services.ledger_service — Balance Engine
===================================================

Credits, debits and cosmetic purchases.

**Invariant:** ``users.balance >= 0`` after every committed operation.

Every mutation is a single atomic SQL statement rather than
load → mutate → save::

    UPDATE users SET balance_minor = balance_minor - :amount
     WHERE id = :user_id AND balance_minor >= :amount
    RETURNING balance_minor

Amounts are compared in integer cents, so a balance can always be
debited down to exactly zero.  Two concurrent debits on the same row are
serialized by the row lock the UPDATE takes; the loser re-evaluates
``balance_minor >= :amount`` against the winner's committed value, so the
account can never be over-drawn.  No separate lock manager is needed.

A purchase runs the conditional debit and the ownership insert in one
transaction: either the user is charged *and* owns the item, or neither.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from highroller.database.engine import get_session
from highroller.database.models import Cosmetic, User, UserCosmetic
from highroller.engine.money import from_minor, parse_amount, to_minor
from highroller.errors import (
    InsufficientFundsError,
    OwnershipError,
    ValidationError,
    account_not_found,
    item_not_found,
)

logger = logging.getLogger(__name__)


def _apply_delta(session: Session, user_id: str, delta: int) -> Decimal | None:
    """Atomically add *delta* cents (may be negative) to the balance.

    Returns the new balance, or ``None`` when no row matched — either the
    account does not exist or the result would be negative.
    """
    stmt = update(User).where(User.id == user_id)
    if delta < 0:
        stmt = stmt.where(User.balance_minor >= -delta)
    stmt = (
        stmt.values(balance_minor=User.balance_minor + delta)
        .returning(User.balance_minor)
        .execution_options(synchronize_session=False)
    )
    new_minor = session.scalar(stmt)
    return None if new_minor is None else from_minor(new_minor)


def _raise_for_missed_debit(session: Session, user_id: str) -> None:
    if session.scalar(select(User.id).where(User.id == user_id)) is None:
        raise account_not_found()
    raise InsufficientFundsError()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_balance(engine, user_id: str) -> Decimal:
    with get_session(engine) as session:
        balance = session.scalar(select(User.balance_minor).where(User.id == user_id))
        if balance is None:
            raise account_not_found()
        return from_minor(balance)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def credit(engine, user_id: str, amount: object) -> Decimal:
    """Add *amount* to the balance and return the new balance.

    Raises
    ------
    ValidationError
        ``invalid_amount`` unless *amount* is a positive finite number with
        at most two decimal places.
    NotFoundError
        Unknown account.
    """
    value = parse_amount(amount)
    with get_session(engine) as session:
        new_balance = _apply_delta(session, user_id, to_minor(value))
        if new_balance is None:
            raise account_not_found()

    logger.info("Credit %s → account %s (balance %s)", value, user_id, new_balance)
    return new_balance


def debit(engine, user_id: str, amount: object) -> Decimal:
    """Remove *amount* from the balance and return the new balance.

    The operation is all-or-nothing: if the balance would drop below zero
    nothing is written.

    Raises
    ------
    ValidationError
        ``invalid_amount`` for a non-positive or malformed amount.
    InsufficientFundsError
        The balance is smaller than *amount*.
    NotFoundError
        Unknown account.
    """
    value = parse_amount(amount)
    with get_session(engine) as session:
        new_balance = _apply_delta(session, user_id, -to_minor(value))
        if new_balance is None:
            _raise_for_missed_debit(session, user_id)

    logger.info("Debit %s ← account %s (balance %s)", value, user_id, new_balance)
    return new_balance


def purchase(engine, user_id: str, item_id: str) -> Decimal:
    """Buy cosmetic *item_id*: charge its price and add it to the owned set.

    Raises
    ------
    ValidationError
        ``missing_item`` if no item id was given.
    NotFoundError
        ``item_not_found`` / ``account_not_found``.
    OwnershipError
        ``already_owned`` if the item is already in the owned set.
    InsufficientFundsError
        The balance is smaller than the item's price.
    """
    if not item_id:
        raise ValidationError("Please provide an item id", code="missing_item")

    try:
        with get_session(engine) as session:
            item = session.get(Cosmetic, item_id)
            if item is None:
                raise item_not_found()

            if session.get(UserCosmetic, (user_id, item_id)) is not None:
                raise OwnershipError("User already owns this item", code="already_owned")

            new_balance = _apply_delta(session, user_id, -item.price_minor)
            if new_balance is None:
                _raise_for_missed_debit(session, user_id)

            session.add(UserCosmetic(user_id=user_id, cosmetic_id=item_id))
            session.flush()
            price = from_minor(item.price_minor)
    except IntegrityError as exc:
        # A concurrent purchase of the same item committed first; the debit
        # above was rolled back together with the failed insert.
        raise OwnershipError("User already owns this item", code="already_owned") from exc
    except InsufficientFundsError:
        logger.info("Purchase of %s by %s rejected: insufficient funds", item_id, user_id)
        raise

    logger.info(
        "Purchase: account %s bought %s for %s (balance %s)",
        user_id, item_id, price, new_balance,
    )
    return new_balance

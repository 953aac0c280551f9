"""
highroller.engine.money — Currency Amount Parsing
=================================================

Balances and prices are stored as integer minor units (cents) in
``BIGINT`` columns, so ledger arithmetic and comparisons stay exact on every
backend.  Every amount that enters the ledger goes through
:func:`parse_amount` first so the services only ever see a positive, finite
:class:`~decimal.Decimal` with at most two fractional digits; :func:`to_minor`
and :func:`from_minor` convert at the storage boundary.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal, InvalidOperation

from highroller.errors import invalid_amount

CENT = Decimal("0.01")
MINOR_PER_UNIT = 100
MAX_AMOUNT = Decimal("999999999999.99")


def to_minor(value: Decimal, rounding: str | None = None) -> int:
    """Decimal currency amount → integer cents.

    Callers pass already-validated amounts; *rounding* only matters for
    range bounds that may carry more than two decimals.
    """
    return int((value * MINOR_PER_UNIT).to_integral_value(rounding=rounding))


def from_minor(value: int | None) -> Decimal:
    """Integer cents → Decimal with exactly two fractional digits."""
    return (Decimal(value or 0) / MINOR_PER_UNIT).quantize(CENT)


def minor_floor(value: Decimal) -> int:
    return to_minor(value, ROUND_FLOOR)


def minor_ceiling(value: Decimal) -> int:
    return to_minor(value, ROUND_CEILING)


def to_decimal(value: object) -> Decimal | None:
    """Best-effort conversion to Decimal; ``None`` when not numeric.

    Booleans are rejected even though ``bool`` is an ``int`` subclass.
    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def parse_amount(value: object) -> Decimal:
    """Validate a credit/debit amount.

    Raises
    ------
    ValidationError
        ``code="invalid_amount"`` when the value is missing, not a finite
        number, not strictly positive, finer than one cent, or absurdly large.
    """
    amount = to_decimal(value)
    if amount is None:
        raise invalid_amount("Please provide a numeric amount")
    if amount <= 0:
        raise invalid_amount("Amount must be positive")
    if amount != amount.quantize(CENT):
        raise invalid_amount("Amount cannot have more than two decimal places")
    if amount > MAX_AMOUNT:
        raise invalid_amount("Amount is too large")
    return amount.quantize(CENT)


def parse_price(value: object) -> Decimal:
    """Like :func:`parse_amount` but zero is allowed (free items)."""
    price = to_decimal(value)
    if price is None or price < 0:
        raise invalid_amount("Price must be a non-negative number")
    if price != price.quantize(CENT):
        raise invalid_amount("Price cannot have more than two decimal places")
    if price > MAX_AMOUNT:
        raise invalid_amount("Price is too large")
    return price.quantize(CENT)

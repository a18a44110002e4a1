# -*- coding: utf-8 -*-
"""Fixed-point helpers for balances, stakes, odds and returns."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
MONEY_SCALE = 2
ODDS_SCALE = 2

# Upper bounds keep every scaled value inside a 64-bit INTEGER column.
MAX_AMOUNT = Decimal("1000000000000")  # stake, odds, potential return
MAX_BALANCE = Decimal("1000000000000000")  # a user's total balance


def to_decimal(value, scale: int = MONEY_SCALE, limit: Decimal = MAX_BALANCE) -> Decimal:
    """Convert int/str/Decimal (or a float via its repr) to a Decimal with
    `scale` decimal places, rounding half-up.

    Raises ValueError for malformed, non-finite or out-of-range input
    (|value| > limit).
    """
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a decimal amount: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    if abs(number) > limit:
        raise ValueError(f"Amount out of range (max {limit}): {value!r}")
    try:
        return number.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Not a representable amount: {value!r}")


def to_money(value) -> Decimal:
    return to_decimal(value, MONEY_SCALE)


def potential_return(amount, odds) -> Decimal:
    """amount x odds, frozen at bet creation and rounded to cents."""
    return (to_money(amount) * to_decimal(odds, ODDS_SCALE)).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def format_money(value) -> str | None:
    if value is None:
        return None
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))

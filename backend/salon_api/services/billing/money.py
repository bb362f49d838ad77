"""
Money arithmetic in integer cents.

Fractions are computed with Decimal and rounded half-up to a whole cent:
once per line for discounted amounts, once per operation for tips.
"""

from decimal import ROUND_HALF_UP, Decimal

_ONE = Decimal("1")
_HUNDRED = Decimal("100")


def round_cents(value: Decimal) -> int:
    """Round a Decimal amount of cents half-up to an int."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def discounted_amount_cents(unit_price_cents: int, quantity: int, discount_percent: int) -> int:
    """
    unit_price × quantity × (1 − discount/100), rounded to a cent.

    Zero quantity or zero price yields zero.
    """
    if quantity <= 0 or unit_price_cents <= 0:
        return 0
    gross = Decimal(unit_price_cents) * quantity
    return round_cents(gross * (_HUNDRED - Decimal(discount_percent)) / _HUNDRED)


def settled_amount_cents(
    unit_price_cents: int,
    remaining_before: int,
    quantity: int,
    discount_percent: int,
) -> int:
    """
    Amount due for paying ``quantity`` units out of ``remaining_before``.

    Taken as the difference between the line's remaining value before and
    after, so that any sequence of partial payments adds up to the
    discounted amount of the whole line.
    """
    before = discounted_amount_cents(unit_price_cents, remaining_before, discount_percent)
    after = discounted_amount_cents(unit_price_cents, remaining_before - quantity, discount_percent)
    return before - after


def percent_of(amount_cents: int, percent: int) -> int:
    """``percent``% of an amount, rounded to a cent."""
    if amount_cents <= 0 or percent <= 0:
        return 0
    return round_cents(Decimal(amount_cents) * Decimal(percent) / _HUNDRED)

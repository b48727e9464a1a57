"""Integer arithmetic utilities for the cents-based binary market.

All prices, amounts, balances and share counts are int. No float; Decimal only
at the HTTP boundary (price_to_cents).
Prices are cents in [1, 99]; one share unit pays out exactly 1 cent, so a
fill of N cents mints N YES units and N NO units.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

PAIR_PRICE_CENTS = 100  # YES price + NO price of one complete pair


def validate_price(price: int) -> None:
    """Validate that price is in the range [1, 99] cents."""
    if not (1 <= price <= 99):
        raise ValueError(f"Price must be between 1 and 99 cents, got {price}")


def price_to_cents(price: Decimal | float | str) -> int:
    """Round a (0, 1) decimal price to the nearest cent, half-up: 0.605 -> 61.

    Raises ValueError if the input is not strictly inside (0, 1) or rounds
    onto a boundary (0.001 -> 0, 0.996 -> 100).
    """
    try:
        value = Decimal(str(price))
    except InvalidOperation:
        raise ValueError(f"Price is not a number: {price!r}") from None
    if not (Decimal(0) < value < Decimal(1)):
        raise ValueError(f"Price must be strictly between 0 and 1, got {price}")
    cents = int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    validate_price(cents)
    return cents


def cents_to_price(cents: int) -> str:
    """Convert price cents to a decimal string: 60 -> '0.60'."""
    return f"0.{cents:02d}"


def complement_price(price: int) -> int:
    """The opposite side's price: YES 60 <-> NO 40."""
    return PAIR_PRICE_CENTS - price


def prices_cross(taker_price: int, maker_price: int) -> bool:
    """True when the two limits together cover one complete pair (p + q >= 1)."""
    return taker_price + maker_price >= PAIR_PRICE_CENTS


def fill_cost(price: int, shares: int) -> int:
    """Cost in cents of `shares` units at `price` cents: price * shares / 100, half-up.

    fill_cost(61, 33) = 2013 / 100 -> 20; fill_cost(50, 1) -> 1.
    """
    return (price * shares + PAIR_PRICE_CENTS // 2) // PAIR_PRICE_CENTS


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"

"""Amount generation and decimal <-> smallest-unit conversion.

Token precision comes from the token's decimals() and is never assumed.
Amounts are rounded to that precision before parsing: parse_units()
rejects strings carrying more fractional digits than the token supports.
"""

from __future__ import annotations

import random
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from cashplus_autosub.models.records import Amount

# Enough digits for any uint256 value at up to 77 decimals
_PRECISION = 160


def parse_units(value: str, decimals: int) -> int:
    """Parse a decimal string into an integer count of smallest units.

    Raises ValueError for non-numeric input or more than `decimals`
    fractional digits.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    try:
        quantity = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"invalid decimal value: {value!r}") from None
    if not quantity.is_finite():
        raise ValueError(f"invalid decimal value: {value!r}")

    fractional_digits = max(0, -quantity.as_tuple().exponent)
    if fractional_digits > decimals:
        raise ValueError(
            f"too many decimals for precision {decimals}: {value!r}"
        )

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return int(quantity.scaleb(decimals))


def format_units(units: int, decimals: int) -> str:
    """Render smallest units as a decimal string with exactly `decimals` places."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return format(Decimal(units).scaleb(-decimals), "f")


def quantize(value: Decimal, decimals: int, rounding: str = ROUND_HALF_UP) -> str:
    """Format `value` with exactly `decimals` fractional digits."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        step = Decimal(1).scaleb(-decimals)
        return format(value.quantize(step, rounding=rounding), "f")


def to_units(value: Decimal, decimals: int, rounding: str = ROUND_HALF_UP) -> int:
    """Round `value` to token precision, then parse it into smallest units."""
    return parse_units(quantize(value, decimals, rounding), decimals)


def next_amount(
    min_amount: Decimal,
    max_amount: Decimal,
    decimals: int,
    rng: random.Random | None = None,
) -> Amount:
    """Draw a uniform amount in [min_amount, max_amount) at token precision.

    The draw uses the stdlib PRNG: amounts only need to vary, not be
    unpredictable.
    """
    draw = (rng or random).random()
    raw = min_amount + (max_amount - min_amount) * Decimal(repr(draw))
    display = quantize(raw, decimals)
    return Amount(display=display, units=parse_units(display, decimals))

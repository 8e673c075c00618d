from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

"""Money rounding helpers and the rounding allocator.

Amounts are carried as floats on the ledger rows, but every computation goes
through ``Decimal`` built from the float's shortest repr, so 1000.30 + 50.015
is exactly 1050.315 before it is rounded half-up to 1050.32.
"""

__all__ = [
    "RoundingResult",
    "allocate_rounding",
    "round2",
    "to_decimal",
]

_CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert a float/int/Decimal/str amount to Decimal (0 on bad input)."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal(0)
    if isinstance(value, float) and not math.isfinite(value):
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def round2(value: Any) -> float:
    """Round half-up to two decimal places."""
    return float(to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class RoundingResult:
    """Single-direction rounding entry for a gross amount.

    At most one of ``rounding_debit`` / ``rounding_credit`` is non-zero and
    ``invoice_amount`` is always a whole amount.
    """
    invoice_amount: float
    rounding_debit: float = 0.0
    rounding_credit: float = 0.0


def allocate_rounding(gross_amount: Any) -> RoundingResult:
    """Turn the fractional part of ``gross_amount`` into a rounding entry.

    - no fraction: no rounding entries
    - fraction >= 0.5: round up, difference booked as rounding credit
    - fraction < 0.5: round down, fraction booked as rounding debit
    """
    gross = to_decimal(gross_amount)
    floor = gross.to_integral_value(rounding=ROUND_FLOOR)
    decimal_part = gross - floor

    if decimal_part == 0:
        return RoundingResult(invoice_amount=float(gross))

    if decimal_part >= Decimal("0.5"):
        ceiling = gross.to_integral_value(rounding=ROUND_CEILING)
        return RoundingResult(
            invoice_amount=float(ceiling),
            rounding_credit=round2(ceiling - gross),
        )

    return RoundingResult(
        invoice_amount=float(floor),
        rounding_debit=round2(decimal_part),
    )

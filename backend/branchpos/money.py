"""
Money helpers.

All amounts are stored and computed as integer cents. Decimal input from the
outside world (JSON "1200.50", floats from spreadsheets) is rounded half-up to
cents exactly once, at the boundary, so no arithmetic step can drift.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError

_CENT = Decimal("0.01")

# Largest amount a signed 64-bit cents column holds.
MAX_CENTS = 2**63 - 1


def to_cents(value, field: str = "amount") -> int:
    """Convert a decimal-ish value (str, int, float, Decimal) to integer cents."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", details={"field": field, "value": str(value)})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    try:
        cents = int(amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        raise ValidationError(f"{field} is too large", details={"field": field, "value": str(value)})
    if abs(cents) > MAX_CENTS:
        raise ValidationError(f"{field} is too large", details={"field": field, "value": str(value)})
    return cents


def format_cents(cents: int | None) -> str | None:
    """Render cents as a fixed two-decimal string (10050 -> "100.50")."""
    if cents is None:
        return None
    return str((Decimal(cents) / 100).quantize(_CENT))


def divide_cents(total_cents: int, parts: int) -> int:
    """Equal share of total_cents over parts, rounded half-up to a whole cent."""
    share = (Decimal(total_cents) / Decimal(parts)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(share)

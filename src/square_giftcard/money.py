"""Currency conversion at the Square wire boundary.

Callers work in decimal currency units (dollars). Square expects integer
minor units (cents). Conversion happens once, when a request body is built.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from square_giftcard.exceptions import SquareValidationError

CENTS = Decimal("100")
DEFAULT_CURRENCY = "USD"


def to_minor_units(amount: Decimal | float | int | str, *, field: str = "amount") -> int:
    """Convert a decimal amount to integer minor units.

    Equivalent to ``round(amount * 100)`` with half-up rounding, computed on
    ``Decimal`` so binary float artifacts (e.g. ``0.29 * 100``) never leak in.

    Raises:
        SquareValidationError: If the amount is not a finite number or rounds
            to less than one cent.
    """
    try:
        # str() first: Decimal(0.1) would carry the float's binary error
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation:
        msg = f"Invalid amount: {amount!r}"
        raise SquareValidationError(msg, field=field) from None

    if not value.is_finite():
        msg = f"Invalid amount: {amount!r}"
        raise SquareValidationError(msg, field=field)

    # Checked after rounding: 0.004 is positive but rounds to zero cents
    cents = int((value * CENTS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents <= 0:
        msg = f"Amount must be at least 0.01, got {amount!r}"
        raise SquareValidationError(msg, field=field)

    return cents


def from_minor_units(cents: int) -> Decimal:
    """Convert integer minor units back to a two-place decimal amount."""
    return (Decimal(cents) / CENTS).quantize(Decimal("0.01"))


def money(
    amount: Decimal | float | int | str,
    currency: str | None = None,
    *,
    field: str = "amount",
) -> dict[str, Any]:
    """Build a Square ``Money`` object from a decimal amount."""
    code = (currency or DEFAULT_CURRENCY).upper()
    if len(code) != 3 or not code.isalpha():
        msg = f"Invalid currency code: {currency!r}"
        raise SquareValidationError(msg, field=f"{field}.currency")
    return {"amount": to_minor_units(amount, field=field), "currency": code}

"""Tests for currency unit conversion."""

from decimal import Decimal

import pytest

from square_giftcard.exceptions import SquareValidationError
from square_giftcard.money import from_minor_units, money, to_minor_units


class TestToMinorUnits:
    """Tests for decimal -> cents conversion."""

    @pytest.mark.parametrize(
        ("amount", "cents"),
        [
            (49.99, 4999),
            (0.01, 1),
            (500.00, 50000),
            (0.29, 29),
            (1.005, 101),
            (25, 2500),
            ("19.95", 1995),
            (Decimal("10.50"), 1050),
        ],
    )
    def test_converts(self, amount: float | int | str | Decimal, cents: int) -> None:
        assert to_minor_units(amount) == cents

    def test_round_trip_preserves_amount(self) -> None:
        """Cents conversion and back yields the original two-place value."""
        for amount in ("49.99", "0.01", "500.00"):
            assert from_minor_units(to_minor_units(amount)) == Decimal(amount)

    @pytest.mark.parametrize("amount", [0, -5, "-0.01"])
    def test_rejects_non_positive(self, amount: int | str) -> None:
        with pytest.raises(SquareValidationError) as exc_info:
            to_minor_units(amount, field="amount")

        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("amount", [Decimal("0.004"), "0.001", 0.0049])
    def test_rejects_amounts_rounding_to_zero_cents(self, amount: Decimal | str | float) -> None:
        """Positive amounts below half a cent would become a zero charge."""
        with pytest.raises(SquareValidationError) as exc_info:
            to_minor_units(amount, field="price")

        assert exc_info.value.field == "price"

    def test_half_cent_rounds_up_to_one_cent(self) -> None:
        assert to_minor_units("0.005") == 1

    @pytest.mark.parametrize("amount", ["abc", "NaN", float("inf")])
    def test_rejects_non_numbers(self, amount: str | float) -> None:
        with pytest.raises(SquareValidationError):
            to_minor_units(amount)


class TestMoney:
    """Tests for building Square Money objects."""

    def test_defaults_to_usd(self) -> None:
        assert money(12.5) == {"amount": 1250, "currency": "USD"}

    def test_uppercases_currency(self) -> None:
        assert money("3.00", "cad") == {"amount": 300, "currency": "CAD"}

    @pytest.mark.parametrize("currency", ["US", "DOLLARS", "U5D"])
    def test_rejects_bad_currency(self, currency: str) -> None:
        with pytest.raises(SquareValidationError) as exc_info:
            money(1, currency, field="price")

        assert exc_info.value.field == "price.currency"

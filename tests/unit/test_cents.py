"""Tests for bm_common.cents — integer arithmetic utilities."""
from decimal import Decimal

import pytest

from src.bm_common.cents import (
    cents_to_display,
    cents_to_price,
    complement_price,
    fill_cost,
    price_to_cents,
    prices_cross,
    validate_price,
)


class TestValidatePrice:
    def test_valid_prices(self) -> None:
        for p in [1, 50, 99]:
            validate_price(p)  # Should not raise

    def test_zero_raises(self) -> None:
        with pytest.raises(ValueError, match=r"1.*99"):
            validate_price(0)

    def test_hundred_raises(self) -> None:
        with pytest.raises(ValueError, match=r"1.*99"):
            validate_price(100)


class TestPriceToCents:
    def test_exact_cent(self) -> None:
        assert price_to_cents(Decimal("0.60")) == 60

    def test_rounds_half_up(self) -> None:
        assert price_to_cents(Decimal("0.605")) == 61
        assert price_to_cents(Decimal("0.604")) == 60

    def test_accepts_str_and_float(self) -> None:
        assert price_to_cents("0.4") == 40
        assert price_to_cents(0.35) == 35

    @pytest.mark.parametrize("price", ["0", "1", "1.5", "-0.2"])
    def test_open_interval_only(self, price: str) -> None:
        with pytest.raises(ValueError):
            price_to_cents(price)

    @pytest.mark.parametrize("price", ["0.001", "0.996"])
    def test_rounding_onto_boundary_rejected(self, price: str) -> None:
        with pytest.raises(ValueError):
            price_to_cents(price)

    def test_garbage_rejected(self) -> None:
        with pytest.raises(ValueError, match="not a number"):
            price_to_cents("abc")


class TestPairArithmetic:
    def test_complement(self) -> None:
        assert complement_price(60) == 40
        assert complement_price(1) == 99

    def test_prices_cross_at_exactly_one(self) -> None:
        assert prices_cross(60, 40)

    def test_prices_cross_above_one(self) -> None:
        assert prices_cross(65, 40)

    def test_prices_do_not_cross_below_one(self) -> None:
        assert not prices_cross(59, 40)

    def test_cents_to_price(self) -> None:
        assert cents_to_price(60) == "0.60"
        assert cents_to_price(5) == "0.05"


class TestFillCost:
    def test_exact(self) -> None:
        assert fill_cost(60, 40) == 24

    def test_rounds_half_up(self) -> None:
        assert fill_cost(50, 1) == 1
        assert fill_cost(61, 33) == 20

    def test_never_exceeds_amount(self) -> None:
        for price in (1, 50, 99):
            for amount in (1, 2, 3, 99, 1000):
                assert fill_cost(price, amount) <= amount


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_one_cent(self) -> None:
        assert cents_to_display(1) == "$0.01"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-$12.00"

    def test_thousands(self) -> None:
        assert cents_to_display(123456789) == "$1,234,567.89"

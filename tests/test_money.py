"""Tests for integer paisa arithmetic."""

from decimal import Decimal

import pytest

from salon_settlement.calculators import money


class TestArithmetic:
    """Test add/subtract/percentage/rate helpers."""

    def test_add(self):
        assert money.add(100, 250, 0) == 350
        assert money.add() == 0

    def test_subtract_floors_at_zero(self):
        assert money.subtract(500, 200) == 300
        assert money.subtract(200, 500) == 0

    def test_percentage_rounds_half_up(self):
        # 12.5% of 100 paisa is 12.5 paisa
        assert money.percentage_of(100, 12.5) == 13
        assert money.percentage_of(50_000, 20) == 10_000
        assert money.percentage_of(50_000, 0) == 0
        assert money.percentage_of(50_000, 100) == 50_000

    def test_apply_rate_rounds_half_up(self):
        assert money.apply_rate(40_000, Decimal("0.18")) == 7_200
        # 18% of 25 paisa is 4.5 paisa
        assert money.apply_rate(25, Decimal("0.18")) == 5
        assert money.apply_rate(0, Decimal("0.18")) == 0

    def test_cap_at(self):
        assert money.cap_at(500, 300) == 300
        assert money.cap_at(200, 300) == 200

    @pytest.mark.parametrize("bad", [-1, 1.5, "10", True, None])
    def test_rejects_non_paisa_amounts(self, bad):
        with pytest.raises(ValueError):
            money.add(bad)


class TestRupeeConversion:
    """Test conversion between rupees and paisa."""

    def test_rupees_to_paisa(self):
        assert money.rupees_to_paisa(100) == 10_000
        assert money.rupees_to_paisa("99.99") == 9_999
        assert money.rupees_to_paisa(Decimal("0.005")) == 1

    def test_float_converts_by_repr(self):
        # Binary 2.675 is slightly below 2.675; repr conversion keeps it half-up
        assert money.rupees_to_paisa(2.675) == 268

    def test_ceiling_caps_result(self):
        assert money.rupees_to_paisa(1_000, ceiling=50_000) == 50_000
        assert money.rupees_to_paisa(400, ceiling=50_000) == 40_000

    def test_huge_value_is_capped_not_overflowed(self):
        assert money.rupees_to_paisa("1e30", ceiling=10_000_000) == 10_000_000

    @pytest.mark.parametrize("bad", [-1, "-0.01", "abc", "NaN", "Infinity"])
    def test_rejects_invalid_rupees(self, bad):
        with pytest.raises(ValueError):
            money.rupees_to_paisa(bad)

    def test_paisa_to_rupees(self):
        assert money.paisa_to_rupees(47_200) == Decimal("472.00")
        assert money.paisa_to_rupees(5) == Decimal("0.05")


class TestFormatRupees:
    """Test display formatting with Indian digit grouping."""

    @pytest.mark.parametrize(
        "paisa,expected",
        [
            (0, "₹0.00"),
            (5, "₹0.05"),
            (47_200, "₹472.00"),
            (123_400, "₹1,234.00"),
            (10_000_000, "₹1,00,000.00"),
            (12_345_678, "₹1,23,456.78"),
            (1_234_567_890, "₹1,23,45,678.90"),
        ],
    )
    def test_format(self, paisa, expected):
        assert money.format_rupees(paisa) == expected

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            money.format_rupees(-100)

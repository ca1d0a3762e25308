"""
Tests for Quantity, Money and the shared enumerations.
"""

from decimal import Decimal

import pytest

from domain.shared.exceptions import (
    ValidationException,
    UnitMismatchException,
    NegativeQuantityException,
    CurrencyMismatchException,
    NegativeAmountException,
)
from domain.shared.value_objects import (
    ManufacturingOrderStatus,
    Money,
    Priority,
    ProductType,
    Quantity,
    to_decimal,
)


class TestQuantity:

    @pytest.mark.parametrize("a, b", [
        ("0", "0"),
        ("2.5", "0.75"),
        ("1000000", "0.000001"),
    ])
    def test_add_then_subtract_returns_original(self, a, b):
        left = Quantity.create(a, "kg")
        right = Quantity.create(b, "kg")
        assert left.add(right).subtract(right).is_equal_to(left)

    def test_unit_is_normalized(self):
        assert Quantity.create(1, " KG ").unit == "kg"
        assert Quantity.create(1, "KG") == Quantity.create(1, "kg")

    def test_decimal_arithmetic_is_exact(self):
        result = Quantity.create(2, "kg").multiply(10).multiply("1.1")
        assert result.value == Decimal("22")

    @pytest.mark.parametrize("operation", ["add", "subtract", "is_greater_than", "is_less_than"])
    def test_different_units_fail(self, operation):
        with pytest.raises(UnitMismatchException) as exc_info:
            getattr(Quantity.create(1, "kg"), operation)(Quantity.create(1, "pcs"))
        assert exc_info.value.code == "UNIT_MISMATCH"
        assert isinstance(exc_info.value, ValidationException)

    def test_is_equal_to_different_units_is_false(self):
        assert not Quantity.create(1, "kg").is_equal_to(Quantity.create(1, "pcs"))

    def test_subtract_below_zero_fails(self):
        with pytest.raises(NegativeQuantityException):
            Quantity.create(1, "kg").subtract(Quantity.create(2, "kg"))

    def test_negative_value_rejected(self):
        with pytest.raises(ValidationException, match="negative"):
            Quantity.create(-1, "kg")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "abc", True])
    def test_invalid_numbers_rejected(self, value):
        with pytest.raises(ValidationException):
            Quantity.create(value, "kg")

    @pytest.mark.parametrize("unit", ["", "   ", "kilogrammes"])
    def test_invalid_units_rejected(self, unit):
        with pytest.raises(ValidationException):
            Quantity.create(1, unit)

    def test_negative_factor_rejected(self):
        with pytest.raises(ValidationException, match="Factor"):
            Quantity.create(1, "kg").multiply(-1)

    def test_operators(self):
        a = Quantity.create(3, "kg")
        b = Quantity.create(1, "kg")
        assert (a + b).value == Decimal("4")
        assert (a - b).value == Decimal("2")
        assert (a * 2).value == Decimal("6")

    def test_zero(self):
        assert Quantity.zero("kg").is_zero()
        assert not Quantity.create("0.001", "kg").is_zero()

    def test_str_and_to_dict(self):
        quantity = Quantity.create("22.00", "kg")
        assert str(quantity) == "22 kg"
        assert quantity.to_dict() == {"value": "22.00", "unit": "kg"}


class TestMoney:

    def test_rounds_half_up_to_cents(self):
        assert Money.create("10.005").amount == Decimal("10.01")
        assert Money.create("10.004").amount == Decimal("10.00")

    def test_currency_is_upper_cased(self):
        assert Money.create(1, "eur").currency == "EUR"

    @pytest.mark.parametrize("currency", ["", "EURO", "E1R"])
    def test_invalid_currency_rejected(self, currency):
        with pytest.raises(ValidationException, match="ISO"):
            Money.create(1, currency)

    def test_currency_mismatch(self):
        with pytest.raises(CurrencyMismatchException):
            Money.create(1, "USD").add(Money.create(1, "EUR"))

    def test_subtract_below_zero_fails(self):
        with pytest.raises(NegativeAmountException):
            Money.create(1).subtract(Money.create(2))

    def test_divide(self):
        assert Money.create(10).divide(3).amount == Decimal("3.33")

    @pytest.mark.parametrize("divisor", [0, -2])
    def test_divide_requires_positive_divisor(self, divisor):
        with pytest.raises(ValidationException, match="Divisor"):
            Money.create(10).divide(divisor)

    def test_comparisons(self):
        assert Money.create(5).is_greater_than(Money.create(3))
        assert Money.create(3).is_less_than(Money.create(5))
        assert Money.create("3.001").is_equal_to(Money.create(3))

    def test_str(self):
        assert str(Money.create("7.5", "usd")) == "7.50 USD"


class TestEnumerations:

    def test_terminal_statuses(self):
        terminal = {s for s in ManufacturingOrderStatus if s.is_terminal}
        assert terminal == {ManufacturingOrderStatus.COMPLETED, ManufacturingOrderStatus.CANCELLED}

    def test_priority_weight_order(self):
        weights = [p.weight for p in (Priority.LOW, Priority.NORMAL, Priority.HIGH, Priority.URGENT)]
        assert weights == sorted(weights)

    def test_legacy_medium_maps_to_normal(self):
        assert Priority.parse("medium") is Priority.NORMAL
        assert Priority.parse(" URGENT ") is Priority.URGENT
        assert Priority.parse(Priority.LOW) is Priority.LOW

    def test_unknown_priority_rejected(self):
        with pytest.raises(ValidationException, match="Unknown priority"):
            Priority.parse("critical")

    def test_raw_material_is_not_manufactured(self):
        assert not ProductType.RAW_MATERIAL.is_manufactured
        assert ProductType.FINISHED_GOOD.is_manufactured


def test_to_decimal_keeps_float_digits():
    assert to_decimal(1.1) == Decimal("1.1")

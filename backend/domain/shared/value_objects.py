"""
Shared Value Objects used across multiple domains.

Value Objects are immutable objects that describe characteristics of a thing.
Two value objects are equal if all their properties are equal.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Union
import re

from .exceptions import (
    ValidationException,
    UnitMismatchException,
    NegativeQuantityException,
    CurrencyMismatchException,
    NegativeAmountException,
)


Number = Union[Decimal, int, float, str]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert a number to Decimal, rejecting NaN and infinities."""
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be a valid number", field, value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationException(f"{field} must be a valid number", field, value)
    if not result.is_finite():
        raise ValidationException(f"{field} must be a finite number", field, value)
    return result


# =============================================================================
# ENUMERATIONS
# =============================================================================

class ManufacturingOrderStatus(str, Enum):
    """Lifecycle status of a manufacturing order."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) status."""
        return self in (
            ManufacturingOrderStatus.COMPLETED,
            ManufacturingOrderStatus.CANCELLED,
        )


class Priority(str, Enum):
    """Scheduling priority of a manufacturing order."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def weight(self) -> int:
        """Ordinal used for sorting (LOW = 1 ... URGENT = 4)."""
        mapping = {
            Priority.LOW: 1,
            Priority.NORMAL: 2,
            Priority.HIGH: 3,
            Priority.URGENT: 4,
        }
        return mapping[self]

    @classmethod
    def parse(cls, value: Union[str, Priority]) -> Priority:
        """
        Parse a priority, accepting the legacy ``medium`` spelling.

        Older validators used ``low/medium/high/urgent``; ``medium`` is
        the same level as ``normal``.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "medium":
            return cls.NORMAL
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationException(
                f"Unknown priority '{value}'. "
                f"Valid values: {[p.value for p in cls]}",
                "priority",
                value,
            )


class ProductType(str, Enum):
    """Kind of product."""

    RAW_MATERIAL = "raw_material"            # Purchased, never manufactured
    MANUFACTURED = "manufactured"            # Semi-finished
    FINISHED_GOOD = "finished_good"

    @property
    def is_manufactured(self) -> bool:
        return self != ProductType.RAW_MATERIAL


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class Quantity:
    """
    Value object representing quantity with unit of measure.

    Units are compared after trimming and lower-casing, so ``"KG"`` and
    ``" kg"`` are the same unit.
    """

    value: Decimal
    unit: str  # Unit of measure (pcs, kg, m, etc.)

    def __post_init__(self):
        value = to_decimal(self.value, "value")
        if value < 0:
            raise ValidationException("Quantity value cannot be negative", "value", value)

        if not isinstance(self.unit, str) or not self.unit.strip():
            raise ValidationException("Unit cannot be empty", "unit", self.unit)
        unit = self.unit.strip().lower()
        if len(unit) > 10:
            raise ValidationException("Unit cannot exceed 10 characters", "unit", unit)

        object.__setattr__(self, "value", value)
        object.__setattr__(self, "unit", unit)

    @classmethod
    def create(cls, value: Number, unit: str) -> Quantity:
        return cls(to_decimal(value), unit)

    @classmethod
    def zero(cls, unit: str) -> Quantity:
        return cls(Decimal("0"), unit)

    def _ensure_same_unit(self, other: Quantity) -> None:
        if self.unit != other.unit:
            raise UnitMismatchException(self.unit, other.unit)

    def add(self, other: Quantity) -> Quantity:
        self._ensure_same_unit(other)
        return Quantity(self.value + other.value, self.unit)

    def subtract(self, other: Quantity) -> Quantity:
        self._ensure_same_unit(other)
        result = self.value - other.value
        if result < 0:
            raise NegativeQuantityException(str(self), str(other))
        return Quantity(result, self.unit)

    def multiply(self, factor: Number) -> Quantity:
        factor = to_decimal(factor, "factor")
        if factor < 0:
            raise ValidationException("Factor cannot be negative", "factor", factor)
        return Quantity(self.value * factor, self.unit)

    def is_greater_than(self, other: Quantity) -> bool:
        self._ensure_same_unit(other)
        return self.value > other.value

    def is_less_than(self, other: Quantity) -> bool:
        self._ensure_same_unit(other)
        return self.value < other.value

    def is_equal_to(self, other: Quantity) -> bool:
        return self.unit == other.unit and self.value == other.value

    def is_zero(self) -> bool:
        return self.value == 0

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply

    def to_dict(self) -> dict:
        return {"value": str(self.value), "unit": self.unit}

    def __str__(self) -> str:
        return f"{self.value.normalize():f} {self.unit}"


@dataclass(frozen=True)
class Money:
    """
    Value object representing monetary amount.
    Immutable, rounded to cents and includes currency.
    """

    amount: Decimal
    currency: str = "USD"

    _CURRENCY_RE = re.compile(r'^[A-Z]{3}$')
    _CENTS = Decimal("0.01")

    def __post_init__(self):
        amount = to_decimal(self.amount, "amount")
        if amount < 0:
            raise ValidationException("Amount cannot be negative", "amount", amount)

        currency = self.currency.strip().upper() if isinstance(self.currency, str) else ""
        if not self._CURRENCY_RE.match(currency):
            raise ValidationException(
                "Currency must be a valid 3-letter ISO code", "currency", self.currency
            )

        object.__setattr__(self, "amount", amount.quantize(self._CENTS, rounding=ROUND_HALF_UP))
        object.__setattr__(self, "currency", currency)

    @classmethod
    def create(cls, amount: Number, currency: str = "USD") -> Money:
        return cls(to_decimal(amount, "amount"), currency)

    @classmethod
    def zero(cls, currency: str = "USD") -> Money:
        return cls(Decimal("0"), currency)

    def _ensure_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchException(self.currency, other.currency)

    def add(self, other: Money) -> Money:
        self._ensure_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: Money) -> Money:
        self._ensure_same_currency(other)
        result = self.amount - other.amount
        if result < 0:
            raise NegativeAmountException(str(self), str(other))
        return Money(result, self.currency)

    def multiply(self, factor: Number) -> Money:
        factor = to_decimal(factor, "factor")
        if factor < 0:
            raise ValidationException("Factor cannot be negative", "factor", factor)
        return Money(self.amount * factor, self.currency)

    def divide(self, divisor: Number) -> Money:
        divisor = to_decimal(divisor, "divisor")
        if divisor <= 0:
            raise ValidationException("Divisor must be positive", "divisor", divisor)
        return Money(self.amount / divisor, self.currency)

    def is_greater_than(self, other: Money) -> bool:
        self._ensure_same_currency(other)
        return self.amount > other.amount

    def is_less_than(self, other: Money) -> bool:
        self._ensure_same_currency(other)
        return self.amount < other.amount

    def is_equal_to(self, other: Money) -> bool:
        return self.currency == other.currency and self.amount == other.amount

    def is_zero(self) -> bool:
        return self.amount == 0

    __add__ = add
    __sub__ = subtract
    __mul__ = multiply

    def to_dict(self) -> dict:
        return {"amount": str(self.amount), "currency": self.currency}

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

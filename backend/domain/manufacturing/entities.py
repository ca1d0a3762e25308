"""
Manufacturing Domain - Entities.

Plain records exchanged between the domain service and its collaborators:
products, BOM components and operations, stock snapshots and the derived
material requirements.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional
from uuid import UUID

from domain.shared.exceptions import ValidationException
from domain.shared.value_objects import ProductType, Quantity, Number, to_decimal


@dataclass(frozen=True)
class Product:
    """The slice of product master data the order rules need."""

    id: UUID
    sku: str
    is_active: bool = True
    product_type: ProductType = ProductType.FINISHED_GOOD
    unit: str = "pcs"

    def __post_init__(self):
        try:
            product_type = ProductType(self.product_type)
        except ValueError:
            raise ValidationException(
                f"Unknown product type '{self.product_type}'. "
                f"Valid values: {[t.value for t in ProductType]}",
                "product_type",
                self.product_type,
            )
        object.__setattr__(self, "product_type", product_type)

    @property
    def is_raw_material(self) -> bool:
        return self.product_type == ProductType.RAW_MATERIAL


@dataclass(frozen=True)
class BOMComponent:
    """
    A single line of a Bill of Materials.

    ``quantity`` is needed per one unit of the parent product;
    ``scrap_factor`` is the extra fraction consumed by waste (0.05 = 5%).
    """

    component_id: UUID
    quantity: Quantity
    sequence: int = 0
    scrap_factor: Decimal = Decimal("0")
    notes: Optional[str] = None

    def __post_init__(self):
        if not self.component_id:
            raise ValidationException("Component ID is required", "component_id")
        if self.quantity.is_zero():
            raise ValidationException(
                "Component quantity must be greater than zero",
                "quantity",
                self.quantity,
            )
        scrap_factor = to_decimal(self.scrap_factor, "scrap_factor")
        if scrap_factor < 0:
            raise ValidationException(
                "Scrap factor cannot be negative", "scrap_factor", scrap_factor
            )
        object.__setattr__(self, "scrap_factor", scrap_factor)

    @classmethod
    def create(
        cls,
        component_id: UUID,
        quantity: Number,
        unit: str,
        sequence: int = 0,
        scrap_factor: Number = 0,
        notes: Optional[str] = None,
    ) -> BOMComponent:
        return cls(
            component_id=component_id,
            quantity=Quantity.create(quantity, unit),
            sequence=sequence,
            scrap_factor=to_decimal(scrap_factor, "scrap_factor"),
            notes=notes,
        )


@dataclass(frozen=True)
class BOMOperation:
    """Routing step used to estimate order duration."""

    setup_time_minutes: Decimal
    run_time_minutes: Decimal
    work_center_efficiency: Decimal = Decimal("1")

    def __post_init__(self):
        for name in ("setup_time_minutes", "run_time_minutes", "work_center_efficiency"):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))


@dataclass(frozen=True)
class StockAvailability:
    """Stock snapshot for one component, taken by the stock collaborator."""

    product_id: UUID
    available_quantity: Quantity
    reserved_quantity: Quantity

    @property
    def net_available(self) -> Quantity:
        """Available minus reserved; fails if reserved exceeds available."""
        return self.available_quantity.subtract(self.reserved_quantity)


@dataclass(frozen=True)
class MaterialRequirement:
    """Derived demand for one component. Never persisted."""

    component_id: UUID
    required_quantity: Quantity
    available_quantity: Quantity
    shortfall: Optional[Quantity] = None

    @property
    def has_shortfall(self) -> bool:
        return self.shortfall is not None

    def with_availability(self, net_available: Quantity) -> MaterialRequirement:
        """Return a copy with availability and shortfall filled in."""
        shortfall = None
        if self.required_quantity.is_greater_than(net_available):
            shortfall = self.required_quantity.subtract(net_available)
        return replace(self, available_quantity=net_available, shortfall=shortfall)

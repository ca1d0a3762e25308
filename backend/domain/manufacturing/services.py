"""
Manufacturing Domain - Domain Service.

ManufacturingOrderDomainService is a stateless rule engine. It consumes
BOM components, orders and stock snapshots and returns verdicts or derived
data; it never touches repositories, publishers or loggers.
"""

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
import math

from domain.shared.value_objects import Priority, Quantity, utc_now
from domain.shared.exceptions import (
    ValidationException,
    BusinessRuleViolationException,
    InsufficientStockException,
    MissingStockDataException,
    InvalidEfficiencyException,
)

from .aggregates import ManufacturingOrder
from .entities import (
    Product,
    BOMComponent,
    BOMOperation,
    StockAvailability,
    MaterialRequirement,
)


SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_HOUR = 60 * 60

PRIORITY_BASE_SCORES: Dict[Priority, int] = {
    Priority.URGENT: 100,
    Priority.HIGH: 75,
    Priority.NORMAL: 50,
    Priority.LOW: 25,
}

OVERDUE_BONUS = 200

# (max whole days until due, bonus), checked in order
DUE_DATE_BONUSES: Tuple[Tuple[int, int], ...] = (
    (1, 50),
    (3, 25),
    (7, 10),
)

AGE_GRACE_DAYS = 7
AGE_BONUS_CAP = 30

DEFAULT_AUTO_PRIORITIZE_HOURS = 24


def _ceil_days(seconds: float) -> int:
    return math.ceil(seconds / SECONDS_PER_DAY)


class ManufacturingOrderDomainService:
    """
    Business rules for the manufacturing order lifecycle.

    Every method is a pure function of its arguments. Time-dependent
    methods take an optional ``now`` so a caller can evaluate a whole batch
    against one clock reading.

    ``aggregate_shortfalls`` keeps the historical confirmation error, which
    reports totals across all short components. Set it to False to get a
    message naming each component; the per-component list is always present
    in the exception details.
    """

    def __init__(
        self,
        aggregate_shortfalls: bool = True,
        auto_prioritize_hours: float = DEFAULT_AUTO_PRIORITIZE_HOURS,
    ):
        self.aggregate_shortfalls = aggregate_shortfalls
        self.auto_prioritize_hours = auto_prioritize_hours

    # =========================================================================
    # CREATION
    # =========================================================================

    def validate_manufacturing_order_creation(
        self,
        product: Product,
        quantity: Quantity,
        bom_components: Sequence[BOMComponent],
    ) -> None:
        """Check that an order may be created for a product and quantity."""
        if not product.is_active:
            raise BusinessRuleViolationException(
                "PRODUCT_INACTIVE",
                f"Cannot create manufacturing order for inactive product: {product.sku}",
                details={"product_id": str(product.id)},
            )

        if product.is_raw_material:
            raise BusinessRuleViolationException(
                "RAW_MATERIAL_NOT_MANUFACTURED",
                f"Cannot create manufacturing order for raw material: {product.sku}",
                details={"product_id": str(product.id)},
            )

        if quantity.is_zero() or quantity.value <= 0:
            raise ValidationException(
                "Manufacturing order quantity must be greater than zero",
                "quantity",
                quantity,
            )

        if not bom_components:
            raise BusinessRuleViolationException(
                "EMPTY_BOM",
                f"No BOM components found for product: {product.sku}",
                details={"product_id": str(product.id)},
            )

    # =========================================================================
    # MATERIAL REQUIREMENTS
    # =========================================================================

    def calculate_material_requirements(
        self,
        order_quantity: Quantity,
        bom_components: Iterable[BOMComponent],
    ) -> List[MaterialRequirement]:
        """
        Derive the demand for every component, scrap included.

        required = per_unit * order_quantity * (1 + scrap_factor)

        Availability is left at zero and shortfall unset; see
        ``validate_material_availability``.
        """
        requirements = []
        for component in bom_components:
            base = component.quantity.multiply(order_quantity.value)
            scrap = base.multiply(component.scrap_factor)
            requirements.append(MaterialRequirement(
                component_id=component.component_id,
                required_quantity=base.add(scrap),
                available_quantity=Quantity.zero(component.quantity.unit),
                shortfall=None,
            ))
        return requirements

    def validate_material_availability(
        self,
        material_requirements: Iterable[MaterialRequirement],
        stock_availability: Iterable[StockAvailability],
    ) -> List[MaterialRequirement]:
        """
        Merge a stock snapshot into the requirements.

        Net available is available minus reserved. A component without a
        stock entry raises MissingStockDataException; reserved stock larger
        than available stock raises NegativeQuantityException.
        """
        availability_map = {stock.product_id: stock for stock in stock_availability}

        result = []
        for requirement in material_requirements:
            availability = availability_map.get(requirement.component_id)
            if availability is None:
                raise MissingStockDataException(requirement.component_id)
            result.append(requirement.with_availability(availability.net_available))
        return result

    def summarize_shortfalls(
        self,
        material_requirements: Iterable[MaterialRequirement],
    ) -> List[Dict[str, Any]]:
        """Per-component view of every requirement that is short."""
        return [
            {
                "component_id": str(req.component_id),
                "required": str(req.required_quantity.value),
                "available": str(req.available_quantity.value),
                "shortfall": str(req.shortfall.value),
                "unit": req.required_quantity.unit,
            }
            for req in material_requirements
            if req.has_shortfall
        ]

    # =========================================================================
    # TRANSITION RULES
    # =========================================================================

    def _invalid_status(self, order: ManufacturingOrder, action: str) -> BusinessRuleViolationException:
        return BusinessRuleViolationException(
            "INVALID_STATUS",
            f"Manufacturing order {order.mo_number} cannot be {action} "
            f"in current status: {order.status.value}",
            details={"order_id": str(order.id), "status": order.status.value},
        )

    def validate_manufacturing_order_confirmation(
        self,
        order: ManufacturingOrder,
        material_requirements: Sequence[MaterialRequirement],
    ) -> None:
        """Order must be a draft and no requirement may be short."""
        if not order.can_be_confirmed():
            raise self._invalid_status(order, "confirmed")

        short = [req for req in material_requirements if req.has_shortfall]
        if not short:
            return

        total_required = sum((req.required_quantity.value for req in short), Decimal("0"))
        total_available = sum((req.available_quantity.value for req in short), Decimal("0"))
        shortfalls = self.summarize_shortfalls(short)

        message = None
        if not self.aggregate_shortfalls:
            lines = [
                f"{s['component_id']}: short {s['shortfall']} {s['unit']} "
                f"(required {s['required']}, available {s['available']})"
                for s in shortfalls
            ]
            message = (
                f"Insufficient stock for {len(shortfalls)} component(s) of "
                f"manufacturing order {order.mo_number}: " + "; ".join(lines)
            )

        raise InsufficientStockException(
            "Multiple components",
            str(total_required),
            str(total_available),
            shortfalls=shortfalls,
            message=message,
        )

    def validate_manufacturing_order_start(self, order: ManufacturingOrder) -> None:
        """Order must be confirmed and assigned."""
        if not order.can_be_started():
            raise self._invalid_status(order, "started")

        if not order.assigned_to:
            raise BusinessRuleViolationException(
                "ASSIGNEE_REQUIRED",
                f"Manufacturing order {order.mo_number} must be assigned to a user "
                f"before starting",
                details={"order_id": str(order.id)},
            )

    def validate_manufacturing_order_completion(
        self,
        order: ManufacturingOrder,
        work_orders_completed: bool,
    ) -> None:
        """Order must be in progress and every work order reported complete."""
        if not order.can_be_completed():
            raise self._invalid_status(order, "completed")

        if not work_orders_completed:
            raise BusinessRuleViolationException(
                "WORK_ORDERS_INCOMPLETE",
                f"All work orders must be completed before completing "
                f"manufacturing order {order.mo_number}",
                details={"order_id": str(order.id)},
            )

    def validate_manufacturing_order_cancellation(self, order: ManufacturingOrder) -> None:
        if not order.can_be_cancelled():
            raise self._invalid_status(order, "cancelled")

    # =========================================================================
    # SCHEDULING
    # =========================================================================

    def calculate_priority_score(
        self,
        order: ManufacturingOrder,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Scheduling score, higher is more urgent.

        base priority + due date urgency + age bonus (capped).
        """
        now = now or utc_now()
        score = PRIORITY_BASE_SCORES[order.priority]

        if order.planned_end_date is not None:
            days_until_due = _ceil_days((order.planned_end_date - now).total_seconds())
            if days_until_due < 0:
                score += OVERDUE_BONUS
            else:
                for max_days, bonus in DUE_DATE_BONUSES:
                    if days_until_due <= max_days:
                        score += bonus
                        break

        age_in_days = _ceil_days((now - order.created_at).total_seconds())
        if age_in_days > AGE_GRACE_DAYS:
            score += min(age_in_days - AGE_GRACE_DAYS, AGE_BONUS_CAP)

        return score

    def should_auto_prioritize(
        self,
        order: ManufacturingOrder,
        now: Optional[datetime] = None,
    ) -> bool:
        """Overdue, or due within the auto-prioritize window."""
        now = now or utc_now()
        if order.is_overdue(now):
            return True

        if order.planned_end_date is None:
            return False

        hours_until_due = (order.planned_end_date - now).total_seconds() / SECONDS_PER_HOUR
        return hours_until_due <= self.auto_prioritize_hours

    def rank_manufacturing_orders(
        self,
        orders: Iterable[ManufacturingOrder],
        now: Optional[datetime] = None,
    ) -> List[Tuple[ManufacturingOrder, int]]:
        """Orders with their scores, most urgent first, oldest first on ties."""
        now = now or utc_now()
        scored = [(order, self.calculate_priority_score(order, now)) for order in orders]
        return sorted(scored, key=lambda pair: (-pair[1], pair[0].created_at))

    def calculate_estimated_duration(
        self,
        order_quantity: Quantity,
        bom_operations: Iterable[BOMOperation],
    ) -> Decimal:
        """
        Estimated production time in minutes.

        Each operation takes (setup + run * quantity) / efficiency.
        """
        total_minutes = Decimal("0")
        for index, operation in enumerate(bom_operations):
            if operation.work_center_efficiency <= 0:
                raise InvalidEfficiencyException(operation.work_center_efficiency, index)
            run_time = operation.run_time_minutes * order_quantity.value
            total_minutes += (operation.setup_time_minutes + run_time) / operation.work_center_efficiency
        return total_minutes

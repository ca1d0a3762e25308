"""
Tests for ManufacturingOrderDomainService.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from domain.shared.exceptions import (
    BusinessRuleViolationException,
    InsufficientStockException,
    InvalidEfficiencyException,
    MissingStockDataException,
    NegativeQuantityException,
    UnitMismatchException,
    ValidationException,
)
from domain.shared.value_objects import (
    ManufacturingOrderStatus as Status,
    ProductType,
    Quantity,
)
from domain.manufacturing.entities import (
    BOMComponent,
    BOMOperation,
    Product,
    StockAvailability,
)
from domain.manufacturing.services import ManufacturingOrderDomainService


def stock(component_id, available, reserved, unit):
    return StockAvailability(
        product_id=component_id,
        available_quantity=Quantity.create(available, unit),
        reserved_quantity=Quantity.create(reserved, unit),
    )


# =============================================================================
# CREATION
# =============================================================================

class TestCreationValidation:

    def test_valid(self, domain_service, product, components):
        domain_service.validate_manufacturing_order_creation(
            product, Quantity.create(5, "pcs"), components
        )

    def test_inactive_product(self, domain_service, components):
        product = Product(id=uuid4(), sku="OLD-1", is_active=False)
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_creation(
                product, Quantity.create(5, "pcs"), components
            )
        assert exc_info.value.rule == "PRODUCT_INACTIVE"

    def test_raw_material(self, domain_service, components):
        product = Product(id=uuid4(), sku="STEEL", product_type=ProductType.RAW_MATERIAL)
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_creation(
                product, Quantity.create(5, "kg"), components
            )
        assert exc_info.value.rule == "RAW_MATERIAL_NOT_MANUFACTURED"

    def test_raw_material_given_as_plain_string(self, domain_service, components):
        product = Product(id=uuid4(), sku="STEEL", product_type="raw_material")
        assert product.product_type is ProductType.RAW_MATERIAL
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_creation(
                product, Quantity.create(5, "kg"), components
            )
        assert exc_info.value.rule == "RAW_MATERIAL_NOT_MANUFACTURED"

    def test_unknown_product_type(self):
        with pytest.raises(ValidationException, match="Unknown product type"):
            Product(id=uuid4(), sku="X", product_type="service")

    def test_zero_quantity(self, domain_service, product, components):
        with pytest.raises(ValidationException, match="greater than zero"):
            domain_service.validate_manufacturing_order_creation(
                product, Quantity.zero("pcs"), components
            )

    def test_empty_bom(self, domain_service, product):
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_creation(
                product, Quantity.create(5, "pcs"), []
            )
        assert exc_info.value.rule == "EMPTY_BOM"


# =============================================================================
# MATERIAL REQUIREMENTS
# =============================================================================

class TestMaterialRequirements:

    def test_scrap_is_added(self, domain_service, steel_id):
        component = BOMComponent.create(steel_id, 2, "kg", scrap_factor="0.1")

        [requirement] = domain_service.calculate_material_requirements(
            Quantity.create(10, "pcs"), [component]
        )

        assert requirement.component_id == steel_id
        assert requirement.required_quantity == Quantity.create(22, "kg")
        assert requirement.available_quantity == Quantity.zero("kg")
        assert requirement.shortfall is None

    def test_one_requirement_per_component(self, domain_service, components, bolt_id):
        requirements = domain_service.calculate_material_requirements(
            Quantity.create(10, "pcs"), components
        )
        assert len(requirements) == 2
        assert requirements[1].component_id == bolt_id
        assert requirements[1].required_quantity == Quantity.create(40, "pcs")

    def test_shortfall_uses_net_available(self, domain_service, steel_id):
        requirements = domain_service.calculate_material_requirements(
            Quantity.create(10, "pcs"),
            [BOMComponent.create(steel_id, 2, "kg", scrap_factor="0.1")],
        )

        [result] = domain_service.validate_material_availability(
            requirements, [stock(steel_id, 30, 10, "kg")]
        )

        assert result.available_quantity == Quantity.create(20, "kg")
        assert result.shortfall == Quantity.create(2, "kg")
        assert result.has_shortfall

    def test_enough_stock_has_no_shortfall(self, domain_service, steel_id):
        requirements = domain_service.calculate_material_requirements(
            Quantity.create(10, "pcs"),
            [BOMComponent.create(steel_id, 2, "kg", scrap_factor="0.1")],
        )
        [result] = domain_service.validate_material_availability(
            requirements, [stock(steel_id, 22, 0, "kg")]
        )
        assert result.shortfall is None

    def test_missing_stock_entry(self, domain_service, components, steel_id):
        requirements = domain_service.calculate_material_requirements(
            Quantity.create(1, "pcs"), components
        )
        with pytest.raises(MissingStockDataException) as exc_info:
            domain_service.validate_material_availability(
                requirements, [stock(steel_id, 100, 0, "kg")]
            )
        assert exc_info.value.code == "MISSING_STOCK_DATA"
        assert not isinstance(exc_info.value, BusinessRuleViolationException)

    def test_reserved_above_available(self, domain_service, steel_id):
        requirements = domain_service.calculate_material_requirements(
            Quantity.create(1, "pcs"), [BOMComponent.create(steel_id, 1, "kg")]
        )
        with pytest.raises(NegativeQuantityException):
            domain_service.validate_material_availability(
                requirements, [stock(steel_id, 5, 6, "kg")]
            )

    def test_stock_in_other_unit(self, domain_service, steel_id):
        requirements = domain_service.calculate_material_requirements(
            Quantity.create(1, "pcs"), [BOMComponent.create(steel_id, 1, "kg")]
        )
        with pytest.raises(UnitMismatchException):
            domain_service.validate_material_availability(
                requirements, [stock(steel_id, 5, 0, "g")]
            )

    def test_summarize_shortfalls(self, domain_service, components, steel_id, bolt_id):
        requirements = domain_service.validate_material_availability(
            domain_service.calculate_material_requirements(Quantity.create(10, "pcs"), components),
            [stock(steel_id, 30, 10, "kg"), stock(bolt_id, 100, 0, "pcs")],
        )

        [summary] = domain_service.summarize_shortfalls(requirements)

        assert summary["component_id"] == str(steel_id)
        assert Decimal(summary["shortfall"]) == Decimal("2")
        assert Decimal(summary["required"]) == Decimal("22")
        assert summary["unit"] == "kg"


# =============================================================================
# TRANSITION RULES
# =============================================================================

class TestConfirmation:

    def _requirements(self, domain_service, components, steel_stock, steel_id, bolt_id):
        return domain_service.validate_material_availability(
            domain_service.calculate_material_requirements(Quantity.create(10, "pcs"), components),
            [stock(steel_id, steel_stock, 0, "kg"), stock(bolt_id, 40, 0, "pcs")],
        )

    def test_no_shortfall(self, domain_service, draft_order, components, steel_id, bolt_id):
        requirements = self._requirements(domain_service, components, 22, steel_id, bolt_id)
        domain_service.validate_manufacturing_order_confirmation(draft_order, requirements)

    def test_shortfall_is_aggregated_by_default(
        self, domain_service, draft_order, components, steel_id, bolt_id
    ):
        requirements = self._requirements(domain_service, components, 20, steel_id, bolt_id)

        with pytest.raises(InsufficientStockException) as exc_info:
            domain_service.validate_manufacturing_order_confirmation(draft_order, requirements)

        error = exc_info.value
        assert error.code == "INSUFFICIENT_STOCK"
        assert "Multiple components" in error.message
        assert Decimal(error.details["requested_quantity"]) == Decimal("22")
        assert Decimal(error.details["available_quantity"]) == Decimal("20")
        assert [s["component_id"] for s in error.shortfalls] == [str(steel_id)]

    def test_per_component_message(self, draft_order, components, steel_id, bolt_id):
        service = ManufacturingOrderDomainService(aggregate_shortfalls=False)
        requirements = self._requirements(service, components, 20, steel_id, bolt_id)

        with pytest.raises(InsufficientStockException) as exc_info:
            service.validate_manufacturing_order_confirmation(draft_order, requirements)

        assert str(steel_id) in exc_info.value.message
        assert "MO-000001" in exc_info.value.message

    def test_only_drafts(self, domain_service, make_order):
        order = make_order(status=Status.CONFIRMED.value)
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_confirmation(order, [])
        assert exc_info.value.rule == "INVALID_STATUS"


class TestStart:

    def test_requires_assignee(self, domain_service, make_order):
        order = make_order(status=Status.CONFIRMED.value)
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_start(order)
        assert exc_info.value.rule == "ASSIGNEE_REQUIRED"

    def test_assigned_order_can_start(self, domain_service, make_order):
        order = make_order(status=Status.CONFIRMED.value, assigned_to=uuid4())
        domain_service.validate_manufacturing_order_start(order)

    def test_draft_cannot_start(self, domain_service, make_order):
        with pytest.raises(BusinessRuleViolationException):
            domain_service.validate_manufacturing_order_start(make_order(assigned_to=uuid4()))


class TestCompletionAndCancellation:

    def test_work_orders_must_be_complete(self, domain_service, make_order):
        order = make_order(status=Status.IN_PROGRESS.value)
        with pytest.raises(BusinessRuleViolationException) as exc_info:
            domain_service.validate_manufacturing_order_completion(order, False)
        assert exc_info.value.rule == "WORK_ORDERS_INCOMPLETE"

        domain_service.validate_manufacturing_order_completion(order, True)

    def test_only_in_progress_completes(self, domain_service, draft_order):
        with pytest.raises(BusinessRuleViolationException):
            domain_service.validate_manufacturing_order_completion(draft_order, True)

    @pytest.mark.parametrize("status", [Status.COMPLETED, Status.CANCELLED])
    def test_terminal_orders_cannot_be_cancelled(self, domain_service, make_order, status):
        with pytest.raises(BusinessRuleViolationException):
            domain_service.validate_manufacturing_order_cancellation(make_order(status=status.value))

    def test_in_progress_order_can_be_cancelled(self, domain_service, make_order):
        domain_service.validate_manufacturing_order_cancellation(
            make_order(status=Status.IN_PROGRESS.value)
        )


# =============================================================================
# SCHEDULING
# =============================================================================

class TestPriorityScore:

    def test_urgent_overdue_and_old(self, domain_service, make_order, now):
        order = make_order(
            priority="urgent",
            planned_end_date=now - timedelta(days=1),
            created_at=now - timedelta(days=10),
        )
        assert domain_service.calculate_priority_score(order, now) == 303

    @pytest.mark.parametrize("due_in, bonus", [
        (timedelta(hours=12), 50),
        (timedelta(days=1), 50),
        (timedelta(days=2), 25),
        (timedelta(days=3), 25),
        (timedelta(days=6), 10),
        (timedelta(days=10), 0),
    ])
    def test_due_date_bonus(self, domain_service, make_order, now, due_in, bonus):
        order = make_order(planned_end_date=now + due_in, created_at=now)
        assert domain_service.calculate_priority_score(order, now) == 50 + bonus

    def test_age_bonus_is_capped(self, domain_service, make_order, now):
        order = make_order(priority="low", created_at=now - timedelta(days=100))
        assert domain_service.calculate_priority_score(order, now) == 25 + 30

    def test_no_bonus_within_grace_period(self, domain_service, make_order, now):
        order = make_order(priority="high", created_at=now - timedelta(days=7))
        assert domain_service.calculate_priority_score(order, now) == 75


class TestAutoPrioritize:

    def test_overdue(self, domain_service, make_order, now):
        assert domain_service.should_auto_prioritize(
            make_order(planned_end_date=now - timedelta(hours=1)), now
        )

    def test_due_within_window(self, domain_service, make_order, now):
        assert domain_service.should_auto_prioritize(
            make_order(planned_end_date=now + timedelta(hours=12)), now
        )

    def test_due_later(self, domain_service, make_order, now):
        assert not domain_service.should_auto_prioritize(
            make_order(planned_end_date=now + timedelta(hours=48)), now
        )

    def test_configurable_window(self, make_order, now):
        service = ManufacturingOrderDomainService(auto_prioritize_hours=72)
        assert service.should_auto_prioritize(
            make_order(planned_end_date=now + timedelta(hours=48)), now
        )

    def test_without_due_date(self, domain_service, draft_order, now):
        assert not domain_service.should_auto_prioritize(draft_order, now)

    @pytest.mark.parametrize("status", [Status.COMPLETED, Status.CANCELLED])
    def test_status_does_not_matter(self, domain_service, make_order, now, status):
        order = make_order(status=status.value, planned_end_date=now + timedelta(hours=1))
        assert domain_service.should_auto_prioritize(order, now)


def test_rank_orders(domain_service, make_order, now):
    low = make_order(mo_number="MO-LOW", priority="low", created_at=now)
    overdue = make_order(mo_number="MO-LATE", planned_end_date=now - timedelta(days=2), created_at=now)
    older_normal = make_order(mo_number="MO-OLD", created_at=now - timedelta(days=2))
    newer_normal = make_order(mo_number="MO-NEW", created_at=now - timedelta(days=1))

    ranked = domain_service.rank_manufacturing_orders(
        [low, newer_normal, overdue, older_normal], now
    )

    assert [order.mo_number for order, _ in ranked] == ["MO-LATE", "MO-OLD", "MO-NEW", "MO-LOW"]
    assert [score for _, score in ranked] == [250, 50, 50, 25]


class TestEstimatedDuration:

    def test_sums_operations(self, domain_service):
        operations = [
            BOMOperation(setup_time_minutes=10, run_time_minutes=2),
            BOMOperation(setup_time_minutes=5, run_time_minutes=1, work_center_efficiency="0.5"),
        ]
        minutes = domain_service.calculate_estimated_duration(Quantity.create(5, "pcs"), operations)
        assert minutes == Decimal("40")

    def test_no_operations(self, domain_service):
        assert domain_service.calculate_estimated_duration(Quantity.create(5, "pcs"), []) == 0

    @pytest.mark.parametrize("efficiency", [0, "-0.5"])
    def test_invalid_efficiency(self, domain_service, efficiency):
        operations = [
            BOMOperation(setup_time_minutes=10, run_time_minutes=2),
            BOMOperation(setup_time_minutes=1, run_time_minutes=1, work_center_efficiency=efficiency),
        ]
        with pytest.raises(InvalidEfficiencyException) as exc_info:
            domain_service.calculate_estimated_duration(Quantity.create(5, "pcs"), operations)
        assert exc_info.value.code == "INVALID_EFFICIENCY"
        assert exc_info.value.details["operation_index"] == 1

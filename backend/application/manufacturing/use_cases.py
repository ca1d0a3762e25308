"""
Manufacturing Order Use Cases.

Application services for the order lifecycle. Domain exceptions propagate
to the caller unchanged; the REST exception handler turns them into error
responses.
"""

from __future__ import annotations
from typing import List
from uuid import UUID
import logging

from domain.shared.events import (
    ManufacturingOrderCreated,
    ManufacturingOrderConfirmed,
    ManufacturingOrderStarted,
    ManufacturingOrderCompleted,
    ManufacturingOrderCancelled,
)
from domain.shared.exceptions import (
    EntityNotFoundException,
    InsufficientStockException,
    ValidationException,
)
from domain.shared.value_objects import ManufacturingOrderStatus, Quantity
from domain.manufacturing.aggregates import BOM, ManufacturingOrder
from domain.manufacturing.entities import MaterialRequirement
from domain.manufacturing.repositories import (
    BOMRepository,
    ManufacturingOrderRepository,
    MaterialReservationRepository,
    ProductRepository,
    StockRepository,
    WorkOrderGateway,
)
from domain.manufacturing.services import ManufacturingOrderDomainService

from .commands import (
    CreateManufacturingOrderCommand,
    ConfirmManufacturingOrderCommand,
    StartManufacturingOrderCommand,
    CompleteManufacturingOrderCommand,
    CancelManufacturingOrderCommand,
)
from .ports import EventPublisher, TransactionManager

logger = logging.getLogger(__name__)


class ManufacturingOrderUseCase:
    """Shared plumbing: order lookup inside the current transaction."""

    def __init__(
        self,
        orders: ManufacturingOrderRepository,
        domain_service: ManufacturingOrderDomainService,
        event_publisher: EventPublisher,
        transaction_manager: TransactionManager,
    ):
        self.orders = orders
        self.domain_service = domain_service
        self.event_publisher = event_publisher
        self.transaction_manager = transaction_manager

    def _get_order(self, order_id: UUID) -> ManufacturingOrder:
        order = self.orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundException("ManufacturingOrder", order_id)
        return order


class CreateManufacturingOrderUseCase(ManufacturingOrderUseCase):
    """Create a draft order for a product from one of its BOMs."""

    def __init__(
        self,
        orders: ManufacturingOrderRepository,
        products: ProductRepository,
        boms: BOMRepository,
        domain_service: ManufacturingOrderDomainService,
        event_publisher: EventPublisher,
        transaction_manager: TransactionManager,
    ):
        super().__init__(orders, domain_service, event_publisher, transaction_manager)
        self.products = products
        self.boms = boms

    def execute(self, command: CreateManufacturingOrderCommand) -> ManufacturingOrder:
        command.validate()

        with self.transaction_manager.atomic():
            product = self.products.get_by_id(command.product_id)
            if product is None:
                raise EntityNotFoundException("Product", command.product_id)

            bom = self.boms.get_by_id(command.bom_id)
            if bom is None:
                raise EntityNotFoundException("BOM", command.bom_id)

            if bom.product_id != product.id:
                raise ValidationException(
                    "BOM does not belong to the specified product", "bom_id", command.bom_id
                )

            quantity = Quantity.create(command.quantity, product.unit)
            self.domain_service.validate_manufacturing_order_creation(
                product, quantity, bom.components
            )

            order = ManufacturingOrder.create(
                product_id=product.id,
                bom_id=bom.id,
                quantity=quantity.value,
                quantity_unit=quantity.unit,
                mo_number=self.orders.next_mo_number(),
                created_by=command.created_by,
                priority=command.priority,
                planned_start_date=command.planned_start_date,
                planned_end_date=command.planned_end_date,
                assigned_to=command.assigned_to,
                notes=command.notes,
                metadata=command.metadata,
            )
            saved = self.orders.save(order)

            self.event_publisher.publish(ManufacturingOrderCreated(
                order_id=saved.id,
                mo_number=saved.mo_number,
                product_id=saved.product_id,
                bom_id=saved.bom_id,
                quantity=saved.quantity.value,
                quantity_unit=saved.quantity.unit,
                priority=saved.priority.value,
                created_by=saved.created_by,
                assigned_to=saved.assigned_to,
                planned_start_date=saved.planned_start_date,
                planned_end_date=saved.planned_end_date,
            ))

        logger.info(
            f"Manufacturing order {saved.mo_number} created "
            f"(id={saved.id}, product={product.sku}, quantity={saved.quantity})"
        )
        return saved


class ConfirmManufacturingOrderUseCase(ManufacturingOrderUseCase):
    """
    Confirm a draft order.

    Requirements are derived from the BOM, checked against a stock snapshot
    read in the same transaction, then reserved.
    """

    def __init__(
        self,
        orders: ManufacturingOrderRepository,
        boms: BOMRepository,
        stock: StockRepository,
        reservations: MaterialReservationRepository,
        domain_service: ManufacturingOrderDomainService,
        event_publisher: EventPublisher,
        transaction_manager: TransactionManager,
    ):
        super().__init__(orders, domain_service, event_publisher, transaction_manager)
        self.boms = boms
        self.stock = stock
        self.reservations = reservations

    def check_materials(self, order: ManufacturingOrder, bom: BOM) -> List[MaterialRequirement]:
        """Requirements for the order with availability filled in."""
        requirements = self.domain_service.calculate_material_requirements(
            order.quantity, bom.components
        )
        units = {req.component_id: req.required_quantity.unit for req in requirements}
        snapshot = self.stock.get_availability(list(units), units)
        return self.domain_service.validate_material_availability(requirements, snapshot)

    def execute(self, command: ConfirmManufacturingOrderCommand) -> ManufacturingOrder:
        command.validate()

        with self.transaction_manager.atomic():
            order = self._get_order(command.order_id)

            bom = self.boms.get_by_id(order.bom_id)
            if bom is None:
                raise EntityNotFoundException("BOM", order.bom_id)

            requirements = self.check_materials(order, bom)
            try:
                self.domain_service.validate_manufacturing_order_confirmation(order, requirements)
            except InsufficientStockException as e:
                logger.warning(
                    f"Manufacturing order {order.mo_number} cannot be confirmed: "
                    f"{len(e.shortfalls)} component(s) short"
                )
                raise

            saved = self.orders.save(order.confirm())
            self.reservations.reserve(saved.id, requirements)

            self.event_publisher.publish(ManufacturingOrderConfirmed(
                order_id=saved.id,
                mo_number=saved.mo_number,
                product_id=saved.product_id,
                quantity=saved.quantity.value,
                quantity_unit=saved.quantity.unit,
                confirmed_by=command.confirmed_by,
                material_reservations=tuple(
                    (req.component_id, req.required_quantity.value, req.required_quantity.unit)
                    for req in requirements
                ),
            ))

        logger.info(
            f"Manufacturing order {saved.mo_number} confirmed by {command.confirmed_by}, "
            f"{len(requirements)} material reservation(s)"
        )
        return saved


class StartManufacturingOrderUseCase(ManufacturingOrderUseCase):
    """Start a confirmed, assigned order and spawn its work orders."""

    def __init__(
        self,
        orders: ManufacturingOrderRepository,
        work_orders: WorkOrderGateway,
        domain_service: ManufacturingOrderDomainService,
        event_publisher: EventPublisher,
        transaction_manager: TransactionManager,
    ):
        super().__init__(orders, domain_service, event_publisher, transaction_manager)
        self.work_orders = work_orders

    def execute(self, command: StartManufacturingOrderCommand) -> ManufacturingOrder:
        command.validate()

        with self.transaction_manager.atomic():
            order = self._get_order(command.order_id)
            if command.assign_to:
                order = order.assign_to(command.assign_to)

            self.domain_service.validate_manufacturing_order_start(order)

            saved = self.orders.save(order.start())
            work_order_ids = self.work_orders.create_for_order(saved)

            self.event_publisher.publish(ManufacturingOrderStarted(
                order_id=saved.id,
                mo_number=saved.mo_number,
                product_id=saved.product_id,
                started_by=command.started_by,
                started_at=saved.actual_start_date,
                work_orders_created=tuple(work_order_ids),
            ))

        logger.info(
            f"Manufacturing order {saved.mo_number} started by {command.started_by}, "
            f"{len(work_order_ids)} work order(s) created"
        )
        return saved


class CompleteManufacturingOrderUseCase(ManufacturingOrderUseCase):
    """Complete an in-progress order once all its work orders are done."""

    def __init__(
        self,
        orders: ManufacturingOrderRepository,
        work_orders: WorkOrderGateway,
        domain_service: ManufacturingOrderDomainService,
        event_publisher: EventPublisher,
        transaction_manager: TransactionManager,
    ):
        super().__init__(orders, domain_service, event_publisher, transaction_manager)
        self.work_orders = work_orders

    def execute(self, command: CompleteManufacturingOrderCommand) -> ManufacturingOrder:
        command.validate()

        with self.transaction_manager.atomic():
            order = self._get_order(command.order_id)

            self.domain_service.validate_manufacturing_order_completion(
                order, self.work_orders.all_completed(order.id)
            )

            completed = order.complete()
            if command.quality_notes:
                completed = completed.update_notes(command.quality_notes)
            if command.actual_quantity_produced is not None:
                completed = completed.update_metadata({
                    "actual_quantity_produced": str(command.actual_quantity_produced),
                })

            saved = self.orders.save(completed)

            self.event_publisher.publish(ManufacturingOrderCompleted(
                order_id=saved.id,
                mo_number=saved.mo_number,
                product_id=saved.product_id,
                quantity=saved.quantity.value,
                quantity_unit=saved.quantity.unit,
                completed_by=command.completed_by,
                completed_at=saved.actual_end_date,
                actual_duration_minutes=saved.get_duration(),
                planned_duration_minutes=saved.get_planned_duration(),
                actual_quantity_produced=command.actual_quantity_produced,
            ))

        logger.info(
            f"Manufacturing order {saved.mo_number} completed by {command.completed_by}"
        )
        return saved


class CancelManufacturingOrderUseCase(ManufacturingOrderUseCase):
    """Cancel an open order and release its material reservations."""

    # Statuses in which reservations exist
    RESERVED_STATUSES = (
        ManufacturingOrderStatus.CONFIRMED,
        ManufacturingOrderStatus.IN_PROGRESS,
    )

    def __init__(
        self,
        orders: ManufacturingOrderRepository,
        reservations: MaterialReservationRepository,
        domain_service: ManufacturingOrderDomainService,
        event_publisher: EventPublisher,
        transaction_manager: TransactionManager,
    ):
        super().__init__(orders, domain_service, event_publisher, transaction_manager)
        self.reservations = reservations

    def execute(self, command: CancelManufacturingOrderCommand) -> ManufacturingOrder:
        command.validate()

        with self.transaction_manager.atomic():
            order = self._get_order(command.order_id)
            self.domain_service.validate_manufacturing_order_cancellation(order)

            released: List[UUID] = []
            if order.status in self.RESERVED_STATUSES:
                released = self.reservations.release_for_order(order.id)

            cancelled = order.cancel().update_metadata({
                "cancellation_reason": command.reason.strip(),
                "cancelled_by": str(command.cancelled_by),
            })
            saved = self.orders.save(cancelled)

            self.event_publisher.publish(ManufacturingOrderCancelled(
                order_id=saved.id,
                mo_number=saved.mo_number,
                product_id=saved.product_id,
                cancelled_by=command.cancelled_by,
                reason=command.reason.strip(),
                material_reservations_released=tuple(released),
            ))

        logger.info(
            f"Manufacturing order {saved.mo_number} cancelled by {command.cancelled_by}: "
            f"{command.reason.strip()} ({len(released)} reservation(s) released)"
        )
        return saved

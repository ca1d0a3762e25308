"""
Domain Events.

Domain events are records of significant business occurrences.
They are built by the application layer after a transition has been
persisted and handed to an ``EventPublisher``.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from uuid import UUID, uuid4

from .value_objects import utc_now


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """
    Base class for all domain events.

    Domain events are immutable records of something that happened in the domain.
    They are used for:
    - Decoupling bounded contexts
    - Triggering side effects (notifications, reservations, work orders)
    - Audit trail
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utc_now)

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data payload for message buses."""
        return {"event_type": self.event_type, **asdict(self)}


# =============================================================================
# MANUFACTURING ORDER EVENTS
# =============================================================================

@dataclass(frozen=True)
class ManufacturingOrderCreated(DomainEvent):
    """Event raised when a manufacturing order is created."""

    order_id: UUID
    mo_number: str
    product_id: UUID
    bom_id: UUID
    quantity: Decimal
    quantity_unit: str
    priority: str
    created_by: UUID
    assigned_to: Optional[UUID] = None
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None


@dataclass(frozen=True)
class ManufacturingOrderConfirmed(DomainEvent):
    """Event raised when an order is confirmed and materials are reserved."""

    order_id: UUID
    mo_number: str
    product_id: UUID
    quantity: Decimal
    quantity_unit: str
    confirmed_by: UUID
    # (component_id, reserved quantity, unit) per reservation
    material_reservations: Tuple[Tuple[UUID, Decimal, str], ...] = ()


@dataclass(frozen=True)
class ManufacturingOrderStarted(DomainEvent):
    """Event raised when production starts."""

    order_id: UUID
    mo_number: str
    product_id: UUID
    started_by: UUID
    started_at: datetime
    work_orders_created: Tuple[UUID, ...] = ()


@dataclass(frozen=True)
class ManufacturingOrderCompleted(DomainEvent):
    """Event raised when an order is completed."""

    order_id: UUID
    mo_number: str
    product_id: UUID
    quantity: Decimal
    quantity_unit: str
    completed_by: UUID
    completed_at: datetime
    actual_duration_minutes: Optional[float] = None
    planned_duration_minutes: Optional[float] = None
    actual_quantity_produced: Optional[Decimal] = None


@dataclass(frozen=True)
class ManufacturingOrderCancelled(DomainEvent):
    """Event raised when an order is cancelled."""

    order_id: UUID
    mo_number: str
    product_id: UUID
    cancelled_by: UUID
    reason: Optional[str] = None
    material_reservations_released: Tuple[UUID, ...] = ()

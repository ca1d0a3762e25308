"""
Commands accepted by the manufacturing use cases.

``validate()`` collects every input problem and raises a single
ValidationException listing them in ``details["errors"]``.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from domain.shared.exceptions import ValidationException
from domain.shared.value_objects import Priority


NOTES_MAX_LENGTH = 1000


def _raise_if_errors(errors: List[str], message: str) -> None:
    if errors:
        exc = ValidationException(f"{message}: {', '.join(errors)}")
        exc.details["errors"] = errors
        raise exc


@dataclass(frozen=True)
class CreateManufacturingOrderCommand:
    product_id: UUID
    bom_id: UUID
    quantity: Decimal
    created_by: UUID
    priority: Optional[Priority] = None
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None
    assigned_to: Optional[UUID] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)

    def validate(self) -> None:
        errors = []
        if not self.product_id:
            errors.append("Product ID is required")
        if not self.bom_id:
            errors.append("BOM ID is required")
        if self.quantity is None or self.quantity <= 0:
            errors.append("Quantity must be greater than zero")
        if self.planned_start_date and self.planned_end_date:
            if self.planned_start_date >= self.planned_end_date:
                errors.append("Planned start date must be before planned end date")
        if self.notes and len(self.notes) > NOTES_MAX_LENGTH:
            errors.append(f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")
        if not self.created_by:
            errors.append("Created by user ID is required")
        _raise_if_errors(errors, "Invalid create manufacturing order data")


@dataclass(frozen=True)
class ConfirmManufacturingOrderCommand:
    order_id: UUID
    confirmed_by: UUID

    def validate(self) -> None:
        errors = []
        if not self.order_id:
            errors.append("Order ID is required")
        if not self.confirmed_by:
            errors.append("Confirmed by user ID is required")
        _raise_if_errors(errors, "Invalid confirm manufacturing order data")


@dataclass(frozen=True)
class StartManufacturingOrderCommand:
    order_id: UUID
    started_by: UUID
    # Assign the order as part of starting it
    assign_to: Optional[UUID] = None

    def validate(self) -> None:
        errors = []
        if not self.order_id:
            errors.append("Order ID is required")
        if not self.started_by:
            errors.append("Started by user ID is required")
        _raise_if_errors(errors, "Invalid start manufacturing order data")


@dataclass(frozen=True)
class CompleteManufacturingOrderCommand:
    order_id: UUID
    completed_by: UUID
    actual_quantity_produced: Optional[Decimal] = None
    quality_notes: Optional[str] = None

    def validate(self) -> None:
        errors = []
        if not self.order_id:
            errors.append("Order ID is required")
        if not self.completed_by:
            errors.append("Completed by user ID is required")
        if self.actual_quantity_produced is not None and self.actual_quantity_produced < 0:
            errors.append("Actual quantity produced cannot be negative")
        if self.quality_notes and len(self.quality_notes) > NOTES_MAX_LENGTH:
            errors.append(f"Quality notes cannot exceed {NOTES_MAX_LENGTH} characters")
        _raise_if_errors(errors, "Invalid complete manufacturing order data")


@dataclass(frozen=True)
class CancelManufacturingOrderCommand:
    order_id: UUID
    cancelled_by: UUID
    reason: str = ""

    def validate(self) -> None:
        errors = []
        if not self.order_id:
            errors.append("Order ID is required")
        if not self.cancelled_by:
            errors.append("Cancelled by user ID is required")
        if not self.reason or not self.reason.strip():
            errors.append("Cancellation reason is required")
        _raise_if_errors(errors, "Invalid cancel manufacturing order data")

"""
Manufacturing Domain - Aggregates.

BOM and ManufacturingOrder are immutable records: every change returns a
new snapshot with ``updated_at`` refreshed, the original is never touched.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID, uuid4

from domain.shared.value_objects import (
    ManufacturingOrderStatus,
    Priority,
    Quantity,
    Number,
    utc_now,
)
from domain.shared.exceptions import (
    ValidationException,
    BusinessRuleViolationException,
    BOMAlreadyApprovedException,
    StatusTransitionException,
)

from .entities import BOMComponent


MO_NUMBER_MAX_LENGTH = 50
NOTES_MAX_LENGTH = 1000

# Allowed lifecycle moves; cancellation is the only way back out
STATUS_TRANSITIONS: Dict[ManufacturingOrderStatus, Tuple[ManufacturingOrderStatus, ...]] = {
    ManufacturingOrderStatus.DRAFT: (
        ManufacturingOrderStatus.CONFIRMED,
        ManufacturingOrderStatus.CANCELLED,
    ),
    ManufacturingOrderStatus.CONFIRMED: (
        ManufacturingOrderStatus.IN_PROGRESS,
        ManufacturingOrderStatus.CANCELLED,
    ),
    ManufacturingOrderStatus.IN_PROGRESS: (
        ManufacturingOrderStatus.COMPLETED,
        ManufacturingOrderStatus.CANCELLED,
    ),
    ManufacturingOrderStatus.COMPLETED: (),
    ManufacturingOrderStatus.CANCELLED: (),
}


def _as_uuid(value: Any) -> Optional[UUID]:
    if value is None or value == "":
        return None
    return value if isinstance(value, UUID) else UUID(str(value))


def _require_text(value: Optional[str], message: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationException(message, field_name, value)
    return value


def _minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    if start is None or end is None:
        return None
    return (end - start).total_seconds() / 60


# =============================================================================
# BILL OF MATERIALS
# =============================================================================

@dataclass(frozen=True)
class BOM:
    """
    Versioned, approvable Bill of Materials for one product.

    A BOM is owned by the product it describes; manufacturing orders only
    hold its id.
    """

    id: UUID
    product_id: UUID
    version: str
    name: str
    created_by: UUID
    description: Optional[str] = None
    components: Tuple[BOMComponent, ...] = ()
    is_active: bool = True
    is_default: bool = False
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.id:
            raise ValidationException("BOM ID is required", "id")
        if not self.product_id:
            raise ValidationException("Product ID is required", "product_id")
        _require_text(self.version, "BOM version is required", "version")
        _require_text(self.name, "BOM name is required", "name")
        if not self.created_by:
            raise ValidationException("Created by user ID is required", "created_by")

        object.__setattr__(
            self,
            "components",
            tuple(sorted(self.components, key=lambda c: c.sequence)),
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def is_approved(self) -> bool:
        return self.approved_by is not None

    def get_component(self, component_id: UUID) -> Optional[BOMComponent]:
        for component in self.components:
            if component.component_id == component_id:
                return component
        return None

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def activate(self) -> BOM:
        return replace(self, is_active=True, updated_at=utc_now())

    def deactivate(self) -> BOM:
        return replace(self, is_active=False, updated_at=utc_now())

    def approve(self, approved_by: UUID) -> BOM:
        """
        Approve the BOM.

        Approval happens once; a second call fails instead of silently
        replacing the original approver.
        """
        if self.approved_by is not None:
            raise BOMAlreadyApprovedException(self.id, self.approved_by)
        if not approved_by:
            raise ValidationException("Approver ID is required", "approved_by")

        now = utc_now()
        return replace(self, approved_by=approved_by, approved_at=now, updated_at=now)

    def set_as_default(self) -> BOM:
        return replace(self, is_default=True, updated_at=utc_now())

    def unset_as_default(self) -> BOM:
        return replace(self, is_default=False, updated_at=utc_now())

    # =========================================================================
    # FACTORY / PERSISTENCE
    # =========================================================================

    @classmethod
    def create(
        cls,
        product_id: UUID,
        version: str,
        name: str,
        created_by: UUID,
        description: Optional[str] = None,
        components: Optional[List[BOMComponent]] = None,
    ) -> BOM:
        """Factory method: new active, unapproved, non-default BOM."""
        _require_text(version, "BOM version is required", "version")
        _require_text(name, "BOM name is required", "name")
        now = utc_now()
        return cls(
            id=uuid4(),
            product_id=product_id,
            version=version.strip(),
            name=name.strip(),
            created_by=created_by,
            description=description.strip() if description else None,
            components=tuple(components or ()),
            is_active=True,
            is_default=False,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_persistence(cls, data: Mapping[str, Any]) -> BOM:
        """Rehydrate a BOM from plain data without generating a new id."""
        return cls(
            id=_as_uuid(data["id"]),
            product_id=_as_uuid(data["product_id"]),
            version=data["version"],
            name=data["name"],
            created_by=_as_uuid(data["created_by"]),
            description=data.get("description"),
            components=tuple(
                BOMComponent.create(
                    component_id=_as_uuid(row["component_id"]),
                    quantity=row["quantity"],
                    unit=row["unit"],
                    sequence=row.get("sequence", 0),
                    scrap_factor=row.get("scrap_factor", 0),
                    notes=row.get("notes"),
                )
                for row in data.get("components", ())
            ),
            is_active=data.get("is_active", True),
            is_default=data.get("is_default", False),
            approved_by=_as_uuid(data.get("approved_by")),
            approved_at=data.get("approved_at"),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    def to_persistence(self) -> Dict[str, Any]:
        """Flatten to plain data."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "version": self.version,
            "name": self.name,
            "description": self.description,
            "components": [
                {
                    "component_id": component.component_id,
                    "quantity": component.quantity.value,
                    "unit": component.quantity.unit,
                    "sequence": component.sequence,
                    "scrap_factor": component.scrap_factor,
                    "notes": component.notes,
                }
                for component in self.components
            ],
            "is_active": self.is_active,
            "is_default": self.is_default,
            "created_by": self.created_by,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# =============================================================================
# MANUFACTURING ORDER
# =============================================================================

@dataclass(frozen=True)
class ManufacturingOrder:
    """
    Request to produce a quantity of a product using a specific BOM.

    Lifecycle: draft -> confirmed -> in_progress -> completed, with
    cancelled reachable from any non-terminal status.

    The ``can_be_*`` guards depend on status alone. The transition methods
    only enforce those guards; assignee, stock and work order rules are
    checked by ``ManufacturingOrderDomainService`` before a transition.
    """

    id: UUID
    mo_number: str
    product_id: UUID
    bom_id: UUID
    quantity: Quantity
    created_by: UUID
    status: ManufacturingOrderStatus = ManufacturingOrderStatus.DRAFT
    priority: Priority = Priority.NORMAL
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    assigned_to: Optional[UUID] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict, hash=False)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        _require_text(self.mo_number, "Manufacturing Order number is required", "mo_number")
        if len(self.mo_number) > MO_NUMBER_MAX_LENGTH:
            raise ValidationException(
                f"Manufacturing Order number cannot exceed {MO_NUMBER_MAX_LENGTH} characters",
                "mo_number",
                self.mo_number,
            )

        if self.quantity.is_zero():
            raise ValidationException(
                "Manufacturing Order quantity must be greater than zero",
                "quantity",
                self.quantity,
            )

        if self.notes and len(self.notes) > NOTES_MAX_LENGTH:
            raise ValidationException(
                f"Notes cannot exceed {NOTES_MAX_LENGTH} characters", "notes"
            )

        if self.planned_start_date and self.planned_end_date:
            if self.planned_start_date >= self.planned_end_date:
                raise ValidationException(
                    "Planned start date must be before planned end date",
                    "planned_start_date",
                )

        if self.actual_start_date and self.actual_end_date:
            if self.actual_start_date >= self.actual_end_date:
                raise ValidationException(
                    "Actual start date must be before actual end date",
                    "actual_start_date",
                )

        object.__setattr__(self, "status", ManufacturingOrderStatus(self.status))
        object.__setattr__(self, "priority", Priority.parse(self.priority))
        object.__setattr__(self, "metadata", dict(self.metadata or {}))

    # =========================================================================
    # STATUS GUARDS
    # =========================================================================

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def can_be_confirmed(self) -> bool:
        return self.status == ManufacturingOrderStatus.DRAFT

    def can_be_started(self) -> bool:
        return self.status == ManufacturingOrderStatus.CONFIRMED

    def can_be_completed(self) -> bool:
        return self.status == ManufacturingOrderStatus.IN_PROGRESS

    def can_be_cancelled(self) -> bool:
        return self.status in (
            ManufacturingOrderStatus.DRAFT,
            ManufacturingOrderStatus.CONFIRMED,
            ManufacturingOrderStatus.IN_PROGRESS,
        )

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """Not terminal and past the planned end date."""
        if self.planned_end_date is None or self.is_terminal:
            return False
        return (now or utc_now()) > self.planned_end_date

    def get_planned_duration(self) -> Optional[float]:
        """Planned duration in minutes."""
        return _minutes_between(self.planned_start_date, self.planned_end_date)

    def get_duration(self) -> Optional[float]:
        """Actual duration in minutes."""
        return _minutes_between(self.actual_start_date, self.actual_end_date)

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _transition(self, target: ManufacturingOrderStatus, **changes: Any) -> ManufacturingOrder:
        allowed = STATUS_TRANSITIONS[self.status]
        if target not in allowed:
            raise StatusTransitionException(
                "ManufacturingOrder",
                self.status.value,
                target.value,
                [s.value for s in allowed],
            )
        return replace(self, status=target, updated_at=utc_now(), **changes)

    def confirm(self) -> ManufacturingOrder:
        return self._transition(ManufacturingOrderStatus.CONFIRMED)

    def start(self, now: Optional[datetime] = None) -> ManufacturingOrder:
        return self._transition(
            ManufacturingOrderStatus.IN_PROGRESS,
            actual_start_date=self.actual_start_date or now or utc_now(),
        )

    def complete(self, now: Optional[datetime] = None) -> ManufacturingOrder:
        return self._transition(
            ManufacturingOrderStatus.COMPLETED,
            actual_end_date=self.actual_end_date or now or utc_now(),
        )

    def cancel(self) -> ManufacturingOrder:
        return self._transition(ManufacturingOrderStatus.CANCELLED)

    # =========================================================================
    # UPDATES
    # =========================================================================

    def _ensure_open(self, what: str) -> None:
        if self.is_terminal:
            raise BusinessRuleViolationException(
                "ORDER_CLOSED",
                f"Cannot {what} of {self.status.value} manufacturing order {self.mo_number}",
            )

    def update_priority(self, priority: Priority) -> ManufacturingOrder:
        self._ensure_open("update priority")
        return replace(self, priority=Priority.parse(priority), updated_at=utc_now())

    def update_planned_dates(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ManufacturingOrder:
        """Move the planned window. A date left as None keeps its current value."""
        self._ensure_open("update planned dates")
        return replace(
            self,
            planned_start_date=self.planned_start_date if start_date is None else start_date,
            planned_end_date=self.planned_end_date if end_date is None else end_date,
            updated_at=utc_now(),
        )

    def assign_to(self, user_id: UUID) -> ManufacturingOrder:
        self._ensure_open("update assignee")
        if not user_id:
            raise ValidationException("Assignee user ID is required", "assigned_to")
        return replace(self, assigned_to=user_id, updated_at=utc_now())

    def update_notes(self, notes: str) -> ManufacturingOrder:
        if len(notes) > NOTES_MAX_LENGTH:
            raise ValidationException(
                f"Notes cannot exceed {NOTES_MAX_LENGTH} characters", "notes"
            )
        return replace(self, notes=notes.strip() or None, updated_at=utc_now())

    def update_metadata(self, metadata: Mapping[str, Any]) -> ManufacturingOrder:
        return replace(self, metadata={**self.metadata, **metadata}, updated_at=utc_now())

    # =========================================================================
    # FACTORY / PERSISTENCE
    # =========================================================================

    @classmethod
    def create(
        cls,
        product_id: UUID,
        bom_id: UUID,
        quantity: Number,
        quantity_unit: str,
        mo_number: str,
        created_by: UUID,
        priority: Optional[Priority] = None,
        planned_start_date: Optional[datetime] = None,
        planned_end_date: Optional[datetime] = None,
        assigned_to: Optional[UUID] = None,
        notes: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ManufacturingOrder:
        """Factory method: new order in draft status."""
        now = utc_now()
        return cls(
            id=uuid4(),
            mo_number=mo_number,
            product_id=product_id,
            bom_id=bom_id,
            quantity=Quantity.create(quantity, quantity_unit),
            created_by=created_by,
            status=ManufacturingOrderStatus.DRAFT,
            priority=Priority.parse(priority) if priority else Priority.NORMAL,
            planned_start_date=planned_start_date,
            planned_end_date=planned_end_date,
            assigned_to=assigned_to,
            notes=(notes.strip() or None) if notes else None,
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_persistence(cls, data: Mapping[str, Any]) -> ManufacturingOrder:
        """Rehydrate an order from plain data without generating a new id."""
        return cls(
            id=_as_uuid(data["id"]),
            mo_number=data["mo_number"],
            product_id=_as_uuid(data["product_id"]),
            bom_id=_as_uuid(data["bom_id"]),
            quantity=Quantity.create(data["quantity"], data["quantity_unit"]),
            created_by=_as_uuid(data["created_by"]),
            status=ManufacturingOrderStatus(data.get("status", ManufacturingOrderStatus.DRAFT)),
            priority=Priority.parse(data.get("priority", Priority.NORMAL)),
            planned_start_date=data.get("planned_start_date"),
            planned_end_date=data.get("planned_end_date"),
            actual_start_date=data.get("actual_start_date"),
            actual_end_date=data.get("actual_end_date"),
            assigned_to=_as_uuid(data.get("assigned_to")),
            notes=data.get("notes"),
            metadata=dict(data.get("metadata") or {}),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    def to_persistence(self) -> Dict[str, Any]:
        """Flatten to plain data."""
        return {
            "id": self.id,
            "mo_number": self.mo_number,
            "product_id": self.product_id,
            "bom_id": self.bom_id,
            "quantity": self.quantity.value,
            "quantity_unit": self.quantity.unit,
            "status": self.status.value,
            "priority": self.priority.value,
            "planned_start_date": self.planned_start_date,
            "planned_end_date": self.planned_end_date,
            "actual_start_date": self.actual_start_date,
            "actual_end_date": self.actual_end_date,
            "created_by": self.created_by,
            "assigned_to": self.assigned_to,
            "notes": self.notes,
            "metadata": dict(self.metadata),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

"""
Domain Exceptions.

Custom exceptions for domain-level errors.
Every failure carries a stable ``code`` that the presentation layer
surfaces verbatim, plus a ``details`` dict for structured context.
"""

from typing import Optional, Any, Dict, List


class DomainException(Exception):
    """Base exception for all domain errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "DOMAIN_ERROR"
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any):
        super().__init__(
            message=f"{entity_type} with id '{entity_id}' not found",
            code="ENTITY_NOT_FOUND",
            details={"entity_type": entity_type, "entity_id": str(entity_id)}
        )


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationException(DomainException):
    """Raised when validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field": field, "value": str(value) if value is not None else None}
        )


class UnitMismatchException(ValidationException):
    """Raised when two quantities with different units are combined."""

    def __init__(self, left_unit: str, right_unit: str):
        super().__init__(
            f"Cannot perform operation on different units: {left_unit} and {right_unit}",
            field="unit",
        )
        self.code = "UNIT_MISMATCH"
        self.details.update({"left_unit": left_unit, "right_unit": right_unit})


class NegativeQuantityException(ValidationException):
    """Raised when a subtraction would produce a negative quantity."""

    def __init__(self, minuend: str, subtrahend: str):
        super().__init__(
            f"Subtraction would result in negative quantity: {minuend} - {subtrahend}",
            field="value",
        )
        self.code = "NEGATIVE_RESULT"
        self.details.update({"minuend": minuend, "subtrahend": subtrahend})


class CurrencyMismatchException(ValidationException):
    """Raised when two money amounts with different currencies are combined."""

    def __init__(self, left_currency: str, right_currency: str):
        super().__init__(
            f"Cannot perform operation on different currencies: "
            f"{left_currency} and {right_currency}",
            field="currency",
        )
        self.code = "CURRENCY_MISMATCH"
        self.details.update({
            "left_currency": left_currency,
            "right_currency": right_currency,
        })


class NegativeAmountException(ValidationException):
    """Raised when a subtraction would produce a negative amount."""

    def __init__(self, minuend: str, subtrahend: str):
        super().__init__(
            f"Subtraction would result in negative amount: {minuend} - {subtrahend}",
            field="amount",
        )
        self.code = "NEGATIVE_RESULT"
        self.details.update({"minuend": minuend, "subtrahend": subtrahend})


class InvalidEfficiencyException(ValidationException):
    """Raised when a work center efficiency is zero or negative."""

    def __init__(self, efficiency: Any, operation_index: int):
        super().__init__(
            f"Work center efficiency must be greater than zero "
            f"(operation #{operation_index}: {efficiency})",
            field="work_center_efficiency",
            value=efficiency,
        )
        self.code = "INVALID_EFFICIENCY"
        self.details["operation_index"] = operation_index


# =============================================================================
# BUSINESS RULES
# =============================================================================

class BusinessRuleViolationException(DomainException):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="BUSINESS_RULE_VIOLATION",
            details={"rule": rule, **(details or {})}
        )
        self.rule = rule


class BOMAlreadyApprovedException(BusinessRuleViolationException):
    """Raised when approving a BOM that already carries an approver."""

    def __init__(self, bom_id: Any, approved_by: Any):
        super().__init__(
            "BOM_ALREADY_APPROVED",
            f"BOM '{bom_id}' is already approved",
            details={"bom_id": str(bom_id), "approved_by": str(approved_by)},
        )
        self.code = "ALREADY_APPROVED"


class StatusTransitionException(BusinessRuleViolationException):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        entity_type: str,
        current_status: str,
        target_status: str,
        allowed_transitions: Optional[list] = None
    ):
        super().__init__(
            "INVALID_STATUS_TRANSITION",
            f"Cannot transition {entity_type} from '{current_status}' to '{target_status}'",
            details={
                "entity_type": entity_type,
                "current_status": current_status,
                "target_status": target_status,
                "allowed_transitions": allowed_transitions or []
            }
        )
        self.code = "INVALID_STATUS_TRANSITION"


# =============================================================================
# STOCK
# =============================================================================

class InsufficientStockException(DomainException):
    """
    Raised when material requirements exceed net availability.

    ``required`` and ``available`` are totals across every short component;
    ``shortfalls`` keeps the per-component breakdown.
    """

    def __init__(
        self,
        item_id: Any,
        requested_quantity: str,
        available_quantity: str,
        shortfalls: Optional[List[Dict[str, Any]]] = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or (
                f"Insufficient stock for item '{item_id}'. "
                f"Requested: {requested_quantity}, Available: {available_quantity}"
            ),
            code="INSUFFICIENT_STOCK",
            details={
                "item_id": str(item_id),
                "requested_quantity": requested_quantity,
                "available_quantity": available_quantity,
                "shortfalls": shortfalls or [],
            }
        )
        self.shortfalls = shortfalls or []


class MissingStockDataException(DomainException):
    """
    Raised when a BOM component has no stock availability entry.

    This signals a wiring defect in the caller, not a real shortage.
    """

    def __init__(self, component_id: Any):
        super().__init__(
            message=f"No stock information available for component: {component_id}",
            code="MISSING_STOCK_DATA",
            details={"component_id": str(component_id)}
        )

"""
Manufacturing Domain - Repository Interfaces.

Implemented by the persistence collaborator. Every lifecycle use case runs
inside one transaction, so reads made through these interfaces form the
snapshot the domain service decides on.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from .aggregates import BOM, ManufacturingOrder
from .entities import MaterialRequirement, Product, StockAvailability


class ManufacturingOrderRepository(ABC):
    """Repository interface for ManufacturingOrder records."""

    @abstractmethod
    def get_by_id(self, order_id: UUID) -> Optional[ManufacturingOrder]:
        """Get order by ID."""
        pass

    @abstractmethod
    def save(self, order: ManufacturingOrder) -> ManufacturingOrder:
        """Insert or update an order snapshot."""
        pass

    @abstractmethod
    def next_mo_number(self) -> str:
        """Generate the next unique MO number."""
        pass


class BOMRepository(ABC):
    """Repository interface for BOM records."""

    @abstractmethod
    def get_by_id(self, bom_id: UUID) -> Optional[BOM]:
        """Get BOM with its components."""
        pass


class ProductRepository(ABC):
    """Repository interface for product master data."""

    @abstractmethod
    def get_by_id(self, product_id: UUID) -> Optional[Product]:
        pass


class StockRepository(ABC):
    """Read side of the stock ledger."""

    @abstractmethod
    def get_availability(
        self,
        component_ids: Iterable[UUID],
        unit_by_component: Dict[UUID, str],
    ) -> List[StockAvailability]:
        """
        Stock snapshot for the given components, in the requested units.

        Components the ledger knows nothing about are simply left out.
        """
        pass


class MaterialReservationRepository(ABC):
    """Write side of material reservations."""

    @abstractmethod
    def reserve(
        self,
        order_id: UUID,
        requirements: Iterable[MaterialRequirement],
    ) -> List[UUID]:
        """Reserve the required quantities; returns reservation ids."""
        pass

    @abstractmethod
    def release_for_order(self, order_id: UUID) -> List[UUID]:
        """Release every open reservation of an order; returns their ids."""
        pass


class WorkOrderGateway(ABC):
    """Boundary to the work order subsystem."""

    @abstractmethod
    def create_for_order(self, order: ManufacturingOrder) -> List[UUID]:
        """Spawn work orders for a started order; returns their ids."""
        pass

    @abstractmethod
    def all_completed(self, order_id: UUID) -> bool:
        """True when every work order of the order reports complete."""
        pass

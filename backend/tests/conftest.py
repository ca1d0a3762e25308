"""
Shared fixtures for the manufacturing tests.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from domain.shared.value_objects import ProductType
from domain.manufacturing.aggregates import BOM, ManufacturingOrder
from domain.manufacturing.entities import BOMComponent, Product
from domain.manufacturing.services import ManufacturingOrderDomainService


@pytest.fixture
def now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def domain_service():
    return ManufacturingOrderDomainService()


@pytest.fixture
def product():
    return Product(id=uuid4(), sku="CHAIR-01", product_type=ProductType.FINISHED_GOOD)


@pytest.fixture
def steel_id():
    return uuid4()


@pytest.fixture
def bolt_id():
    return uuid4()


@pytest.fixture
def components(steel_id, bolt_id):
    return [
        BOMComponent.create(steel_id, "2", "kg", sequence=10, scrap_factor="0.1"),
        BOMComponent.create(bolt_id, "4", "pcs", sequence=20),
    ]


@pytest.fixture
def bom(product, components, user_id):
    return BOM.create(
        product_id=product.id,
        version="1.0",
        name="Chair assembly",
        created_by=user_id,
        components=components,
    )


@pytest.fixture
def make_order(product, bom, user_id):
    """Factory for orders; keyword arguments override the record fields."""

    def factory(**overrides):
        fields = dict(
            id=uuid4(),
            mo_number="MO-000001",
            product_id=product.id,
            bom_id=bom.id,
            quantity=10,
            quantity_unit="pcs",
            created_by=user_id,
            created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        )
        fields.update(overrides)
        return ManufacturingOrder.from_persistence(fields)

    return factory


@pytest.fixture
def draft_order(make_order):
    return make_order()

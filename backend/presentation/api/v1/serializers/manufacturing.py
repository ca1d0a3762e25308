"""
Manufacturing API Serializers.

Serializers for the stateless planning endpoints: material requirements,
availability checks, priority scoring and duration estimates. Input
serializers build domain records; output serializers render them.
"""

from rest_framework import serializers

from domain.shared.value_objects import ManufacturingOrderStatus, Priority, Quantity
from domain.shared.exceptions import ValidationException
from domain.manufacturing.aggregates import ManufacturingOrder
from domain.manufacturing.entities import (
    BOMComponent,
    BOMOperation,
    StockAvailability,
)


QUANTITY_FIELD_KWARGS = {'max_digits': 20, 'decimal_places': 6}


# =============================================================================
# INPUT
# =============================================================================

class BOMComponentInputSerializer(serializers.Serializer):
    """One BOM line of a planning request."""

    component_id = serializers.UUIDField()
    quantity = serializers.DecimalField(min_value=0, **QUANTITY_FIELD_KWARGS)
    unit = serializers.CharField(max_length=10)
    sequence = serializers.IntegerField(required=False, default=0)
    scrap_factor = serializers.DecimalField(
        required=False, default=0, min_value=0, max_digits=8, decimal_places=6
    )
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_component(self, data) -> BOMComponent:
        return BOMComponent.create(
            component_id=data['component_id'],
            quantity=data['quantity'],
            unit=data['unit'],
            sequence=data['sequence'],
            scrap_factor=data['scrap_factor'],
            notes=data.get('notes'),
        )


class StockAvailabilityInputSerializer(serializers.Serializer):
    """Stock snapshot line supplied by the caller."""

    product_id = serializers.UUIDField()
    available_quantity = serializers.DecimalField(min_value=0, **QUANTITY_FIELD_KWARGS)
    reserved_quantity = serializers.DecimalField(
        required=False, default=0, min_value=0, **QUANTITY_FIELD_KWARGS
    )
    unit = serializers.CharField(max_length=10)

    def to_availability(self, data) -> StockAvailability:
        return StockAvailability(
            product_id=data['product_id'],
            available_quantity=Quantity.create(data['available_quantity'], data['unit']),
            reserved_quantity=Quantity.create(data['reserved_quantity'], data['unit']),
        )


class MaterialRequirementsRequestSerializer(serializers.Serializer):
    """Order quantity plus the BOM to explode."""

    order_quantity = serializers.DecimalField(min_value=0, **QUANTITY_FIELD_KWARGS)
    unit = serializers.CharField(max_length=10, required=False, default='pcs')
    components = BOMComponentInputSerializer(many=True, allow_empty=False)

    def get_order_quantity(self) -> Quantity:
        return Quantity.create(self.validated_data['order_quantity'], self.validated_data['unit'])

    def get_components(self):
        line = BOMComponentInputSerializer()
        return [line.to_component(row) for row in self.validated_data['components']]


class MaterialAvailabilityRequestSerializer(MaterialRequirementsRequestSerializer):
    """Requirements request plus a stock snapshot."""

    stock = StockAvailabilityInputSerializer(many=True)

    def get_stock(self):
        line = StockAvailabilityInputSerializer()
        return [line.to_availability(row) for row in self.validated_data['stock']]


class BOMOperationInputSerializer(serializers.Serializer):
    """Routing step of a duration estimate."""

    setup_time_minutes = serializers.DecimalField(
        required=False, default=0, min_value=0, max_digits=12, decimal_places=4
    )
    run_time_minutes = serializers.DecimalField(min_value=0, max_digits=12, decimal_places=4)
    # Not range-checked here; the domain rejects zero or negative efficiency
    work_center_efficiency = serializers.DecimalField(
        required=False, default=1, max_digits=6, decimal_places=4
    )


class EstimatedDurationRequestSerializer(serializers.Serializer):
    order_quantity = serializers.DecimalField(min_value=0, **QUANTITY_FIELD_KWARGS)
    unit = serializers.CharField(max_length=10, required=False, default='pcs')
    operations = BOMOperationInputSerializer(many=True)

    def get_order_quantity(self) -> Quantity:
        return Quantity.create(self.validated_data['order_quantity'], self.validated_data['unit'])

    def get_operations(self):
        return [BOMOperation(**row) for row in self.validated_data['operations']]


class ManufacturingOrderSnapshotSerializer(serializers.Serializer):
    """Persisted manufacturing order as supplied by the caller."""

    id = serializers.UUIDField()
    mo_number = serializers.CharField(max_length=50)
    product_id = serializers.UUIDField()
    bom_id = serializers.UUIDField()
    quantity = serializers.DecimalField(**QUANTITY_FIELD_KWARGS)
    quantity_unit = serializers.CharField(max_length=10)
    status = serializers.ChoiceField(
        choices=[s.value for s in ManufacturingOrderStatus],
        required=False,
        default=ManufacturingOrderStatus.DRAFT.value,
    )
    priority = serializers.CharField(required=False, default=Priority.NORMAL.value)
    planned_start_date = serializers.DateTimeField(required=False, allow_null=True)
    planned_end_date = serializers.DateTimeField(required=False, allow_null=True)
    actual_start_date = serializers.DateTimeField(required=False, allow_null=True)
    actual_end_date = serializers.DateTimeField(required=False, allow_null=True)
    created_by = serializers.UUIDField()
    assigned_to = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    metadata = serializers.DictField(required=False, default=dict)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField(required=False)

    def validate_priority(self, value):
        try:
            return Priority.parse(value).value
        except ValidationException as e:
            raise serializers.ValidationError(e.message)

    def validate(self, attrs):
        attrs.setdefault('updated_at', attrs['created_at'])
        return attrs

    def to_order(self, data) -> ManufacturingOrder:
        return ManufacturingOrder.from_persistence(data)


# =============================================================================
# OUTPUT
# =============================================================================

class MaterialRequirementSerializer(serializers.Serializer):
    """Renders a MaterialRequirement."""

    component_id = serializers.UUIDField()
    unit = serializers.CharField(source='required_quantity.unit')
    required_quantity = serializers.DecimalField(
        source='required_quantity.value', **QUANTITY_FIELD_KWARGS
    )
    available_quantity = serializers.DecimalField(
        source='available_quantity.value', **QUANTITY_FIELD_KWARGS
    )
    shortfall = serializers.SerializerMethodField()
    has_shortfall = serializers.BooleanField()

    def get_shortfall(self, obj):
        if obj.shortfall is None:
            return None
        return serializers.DecimalField(**QUANTITY_FIELD_KWARGS).to_representation(
            obj.shortfall.value
        )


class PriorityScoreSerializer(serializers.Serializer):
    """Scheduling verdict for one order."""

    order_id = serializers.UUIDField()
    mo_number = serializers.CharField()
    score = serializers.IntegerField()
    auto_prioritize = serializers.BooleanField()
    is_overdue = serializers.BooleanField()

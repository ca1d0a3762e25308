"""
Manufacturing API Views.

Stateless planning endpoints backed by ManufacturingOrderDomainService.
Callers supply the BOM, stock and order snapshots in the request body;
nothing is read from or written to storage.

Endpoints:
- POST /api/v1/manufacturing/material-requirements/ - explode a BOM
- POST /api/v1/manufacturing/material-availability/ - requirements vs. stock
- POST /api/v1/manufacturing/priority-score/ - score one order
- POST /api/v1/manufacturing/rank/ - order a batch by score
- POST /api/v1/manufacturing/estimated-duration/ - routing time estimate
"""

import logging

from django.conf import settings
from rest_framework import viewsets, serializers
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from domain.shared.value_objects import utc_now
from domain.manufacturing.services import (
    DEFAULT_AUTO_PRIORITIZE_HOURS,
    ManufacturingOrderDomainService,
)
from ..serializers.manufacturing import (
    MaterialRequirementsRequestSerializer,
    MaterialAvailabilityRequestSerializer,
    EstimatedDurationRequestSerializer,
    ManufacturingOrderSnapshotSerializer,
    MaterialRequirementSerializer,
    PriorityScoreSerializer,
)

logger = logging.getLogger(__name__)


def get_domain_service() -> ManufacturingOrderDomainService:
    """Build the domain service from the MANUFACTURING settings dict."""
    options = getattr(settings, 'MANUFACTURING', {})
    return ManufacturingOrderDomainService(
        aggregate_shortfalls=options.get('AGGREGATE_SHORTFALLS', True),
        auto_prioritize_hours=options.get('AUTO_PRIORITIZE_HOURS', DEFAULT_AUTO_PRIORITIZE_HOURS),
    )


class RankRequestSerializer(serializers.Serializer):
    orders = ManufacturingOrderSnapshotSerializer(many=True)


class ManufacturingPlanningViewSet(viewsets.ViewSet):
    """Material planning and scheduling calculations."""

    permission_classes = [IsAuthenticated]

    def _score(self, service, order, now, score=None):
        if score is None:
            score = service.calculate_priority_score(order, now)
        return {
            'order_id': order.id,
            'mo_number': order.mo_number,
            'score': score,
            'auto_prioritize': service.should_auto_prioritize(order, now),
            'is_overdue': order.is_overdue(now),
        }

    @action(detail=False, methods=['post'], url_path='material-requirements')
    def material_requirements(self, request):
        """Explode a BOM for an order quantity, scrap included."""
        serializer = MaterialRequirementsRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        requirements = get_domain_service().calculate_material_requirements(
            serializer.get_order_quantity(), serializer.get_components()
        )
        logger.debug(f"Calculated {len(requirements)} material requirement(s)")
        return Response(MaterialRequirementSerializer(requirements, many=True).data)

    @action(detail=False, methods=['post'], url_path='material-availability')
    def material_availability(self, request):
        """Requirements merged with a stock snapshot."""
        serializer = MaterialAvailabilityRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service = get_domain_service()
        requirements = service.calculate_material_requirements(
            serializer.get_order_quantity(), serializer.get_components()
        )
        requirements = service.validate_material_availability(
            requirements, serializer.get_stock()
        )
        shortfalls = service.summarize_shortfalls(requirements)
        if shortfalls:
            logger.info(f"Availability check found {len(shortfalls)} short component(s)")

        return Response({
            'requirements': MaterialRequirementSerializer(requirements, many=True).data,
            'has_shortfall': bool(shortfalls),
            'shortfalls': shortfalls,
        })

    @action(detail=False, methods=['post'], url_path='priority-score')
    def priority_score(self, request):
        """Priority score and auto-prioritize verdict for one order."""
        serializer = ManufacturingOrderSnapshotSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = serializer.to_order(serializer.validated_data)
        result = self._score(get_domain_service(), order, utc_now())
        return Response(PriorityScoreSerializer(result).data)

    @action(detail=False, methods=['post'])
    def rank(self, request):
        """Orders sorted by descending priority score, oldest first on ties."""
        serializer = RankRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        snapshot = ManufacturingOrderSnapshotSerializer()
        orders = [snapshot.to_order(row) for row in serializer.validated_data['orders']]

        service = get_domain_service()
        now = utc_now()
        ranked = [
            self._score(service, order, now, score)
            for order, score in service.rank_manufacturing_orders(orders, now)
        ]
        return Response(PriorityScoreSerializer(ranked, many=True).data)

    @action(detail=False, methods=['post'], url_path='estimated-duration')
    def estimated_duration(self, request):
        """Estimated production time in minutes."""
        serializer = EstimatedDurationRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        minutes = get_domain_service().calculate_estimated_duration(
            serializer.get_order_quantity(), serializer.get_operations()
        )
        return Response({'minutes': f'{minutes.normalize():f}'})

"""
API v1 URL Configuration.

All API endpoints for version 1.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views.manufacturing import ManufacturingPlanningViewSet

# Create router
router = DefaultRouter()

# Manufacturing planning
router.register(r'manufacturing', ManufacturingPlanningViewSet, basename='manufacturing')

app_name = 'api_v1'

urlpatterns = [
    path('', include(router.urls)),
]

"""
URL configuration for the manufacturing planning service.
"""

from django.urls import path, include

urlpatterns = [
    # API v1
    path('api/v1/', include('presentation.api.v1.urls')),
]

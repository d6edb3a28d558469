"""
URL configuration for the clinic payments project.
"""
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from apps.core.observability.health import HealthzView, ReadyzView

urlpatterns = [
    # Health checks (no auth required)
    path('healthz', HealthzView.as_view(), name='healthz'),
    path('readyz', ReadyzView.as_view(), name='readyz'),

    # Private API (authentication required)
    path('api/', include('apps.core.urls')),  # Notifications, diagnostics
    path('api/v1/authz/', include('apps.authz.urls')),  # Psychologist directory
    path('api/v1/', include('apps.appointments.urls')),  # Appointments
    path('api/v1/payments/', include('apps.payments.urls')),  # Payment batches, dashboard

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]

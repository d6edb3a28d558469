"""Payment URLs."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    BatchPreviewView,
    EligibleAppointmentsView,
    PaymentBatchViewSet,
    PaymentDashboardView,
    PsychologistSummaryView,
)

router = DefaultRouter()
router.register(r'batches', PaymentBatchViewSet, basename='payment-batch')

urlpatterns = [
    path('eligible-appointments/', EligibleAppointmentsView.as_view(), name='payment-eligible-appointments'),
    path('preview/', BatchPreviewView.as_view(), name='payment-preview'),
    path('dashboard/', PaymentDashboardView.as_view(), name='payment-dashboard'),
    path('summary/', PsychologistSummaryView.as_view(), name='payment-summary'),
    path('', include(router.urls)),
]

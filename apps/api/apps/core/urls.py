"""
Core API URLs - Notifications, Diagnostics.
"""
from django.urls import path

from .views import DiagnosticsView, NotificationListView

urlpatterns = [
    path('notifications/', NotificationListView.as_view(), name='notifications'),
    path('ops/diagnostics', DiagnosticsView.as_view(), name='diagnostics'),
]

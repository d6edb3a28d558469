"""
Core views - notifications feed and diagnostics.
"""
from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.permissions import IsAdmin, IsClinicMember
from apps.core.registry import get_registry
from .serializers import NotificationQuerySerializer, NotificationSerializer, SystemDiagnosticsSerializer


class NotificationListView(APIView):
    """
    Recent operation messages, newest first.

    GET /api/notifications/?limit=20
    """
    permission_classes = [IsClinicMember]

    def get(self, request):
        query = NotificationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        notifications = get_registry().notifier.recent(query.validated_data.get('limit'))
        return Response(NotificationSerializer(notifications, many=True).data)


class DiagnosticsView(APIView):
    """
    System diagnostics endpoint - ADMIN ONLY.

    Returns record counts of the in-memory services.
    """
    permission_classes = [IsAdmin]

    def get(self, request):
        registry = get_registry()
        diagnostics = {
            'timestamp': timezone.now(),
            'version': getattr(settings, 'VERSION', 'unknown'),
            'strict_transitions': registry.ledger.strict,
            'psychologists': len(registry.directory),
            'appointments': len(registry.appointments),
            'payment_batches': len(registry.ledger.batches),
            'payment_items': len(registry.ledger.items),
            'notifications': len(registry.notifier.recent()),
        }

        serializer = SystemDiagnosticsSerializer(diagnostics)
        return Response(serializer.data, status=status.HTTP_200_OK)

"""
Core serializers - notifications and diagnostics.
"""
from rest_framework import serializers


class NotificationQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False)


class NotificationSerializer(serializers.Serializer):
    title = serializers.CharField()
    message = serializers.CharField()
    level = serializers.CharField()
    created_at = serializers.DateTimeField()


class SystemDiagnosticsSerializer(serializers.Serializer):
    """Snapshot of the in-memory services."""
    timestamp = serializers.DateTimeField()
    version = serializers.CharField()
    strict_transitions = serializers.BooleanField()
    psychologists = serializers.IntegerField()
    appointments = serializers.IntegerField()
    payment_batches = serializers.IntegerField()
    payment_items = serializers.IntegerField()
    notifications = serializers.IntegerField()

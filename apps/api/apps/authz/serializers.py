"""
Authz serializers for the psychologist directory.
"""
from rest_framework import serializers


class PsychologistSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    name = serializers.CharField(max_length=200)
    commission_percentage = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=0,
        max_value=100,
        allow_null=True,
        required=False,
        help_text='Share of the gross value paid to the psychologist. Null uses the clinic default.'
    )
    is_active = serializers.BooleanField(default=True)

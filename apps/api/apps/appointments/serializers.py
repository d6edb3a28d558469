"""Appointment serializers."""
from rest_framework import serializers

from apps.appointments.models import (
    AppointmentStatusChoices,
    PaymentMethodChoices,
    RecurrenceChoices,
)
from apps.appointments.periods import PeriodChoices


class AppointmentSerializer(serializers.Serializer):
    """
    Appointment record with business validations.

    1. value >= 0
    2. end_time after start_time
    3. insurance details only for insurance payments
    4. recurrence_type only for recurring appointments
    """
    id = serializers.CharField(read_only=True)
    psychologist_id = serializers.CharField(max_length=100)
    psychologist_name = serializers.CharField(max_length=200)
    patient_name = serializers.CharField(max_length=200)
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    value = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    status = serializers.ChoiceField(
        choices=AppointmentStatusChoices.choices,
        default=AppointmentStatusChoices.PENDING.value
    )
    payment_method = serializers.ChoiceField(
        choices=PaymentMethodChoices.choices,
        default=PaymentMethodChoices.PRIVATE.value
    )
    insurance_type = serializers.CharField(max_length=100, allow_null=True, required=False)
    authorization_token = serializers.CharField(max_length=200, allow_null=True, required=False)
    is_recurring = serializers.BooleanField(default=False)
    recurrence_type = serializers.ChoiceField(
        choices=RecurrenceChoices.choices,
        allow_null=True,
        required=False
    )

    def validate(self, attrs):
        # Partial updates validate against the stored record
        current = {}
        if self.instance is not None:
            current = {name: getattr(self.instance, name) for name in self.fields if name != 'id'}
        merged = {**current, **attrs}

        start_time = merged.get('start_time')
        end_time = merged.get('end_time')
        if start_time and end_time and end_time <= start_time:
            raise serializers.ValidationError({'end_time': 'End time must be after start time'})

        if merged.get('payment_method') != PaymentMethodChoices.INSURANCE:
            if merged.get('insurance_type') or merged.get('authorization_token'):
                raise serializers.ValidationError({
                    'payment_method': 'Insurance details require the insurance payment method'
                })

        if merged.get('recurrence_type') and not merged.get('is_recurring'):
            raise serializers.ValidationError({
                'recurrence_type': 'Only recurring appointments have a recurrence type'
            })

        return attrs


class AppointmentFilterSerializer(serializers.Serializer):
    psychologist_id = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=AppointmentStatusChoices.choices, required=False)
    date = serializers.DateField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class StatusSummaryQuerySerializer(serializers.Serializer):
    period = serializers.ChoiceField(choices=PeriodChoices.choices, default=PeriodChoices.MONTH.value)
    psychologist_id = serializers.CharField(required=False)


class AppointmentStatusSummarySerializer(serializers.Serializer):
    period = serializers.CharField()
    start = serializers.DateField()
    end = serializers.DateField()
    pending = serializers.IntegerField()
    confirmed = serializers.IntegerField()
    cancelled = serializers.IntegerField()
    completed = serializers.IntegerField()
    rescheduled = serializers.IntegerField()
    total = serializers.IntegerField()

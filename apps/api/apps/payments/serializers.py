"""Payment serializers."""
from rest_framework import serializers

from apps.appointments.store import AppointmentNotFound
from apps.payments.models import PaymentStatusChoices


class PaymentItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    payment_batch_id = serializers.CharField()
    appointment_id = serializers.CharField()
    appointment_date = serializers.DateField()
    patient_name = serializers.CharField()
    gross_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    commission_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    net_value = serializers.DecimalField(max_digits=12, decimal_places=2)


class PaymentBatchSerializer(serializers.Serializer):
    id = serializers.CharField()
    psychologist_id = serializers.CharField()
    psychologist_name = serializers.CharField()
    created_by = serializers.CharField()
    created_by_name = serializers.CharField()
    created_at = serializers.DateTimeField()
    total_gross_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_net_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    status = serializers.CharField()
    status_display = serializers.SerializerMethodField()
    contestation_reason = serializers.CharField(allow_null=True)
    contested_at = serializers.DateTimeField(allow_null=True)
    approved_at = serializers.DateTimeField(allow_null=True)
    paid_at = serializers.DateTimeField(allow_null=True)
    appointment_ids = serializers.ListField(child=serializers.CharField())

    def get_status_display(self, batch):
        return PaymentStatusChoices(batch.status).label


class AppointmentSelectionSerializer(serializers.Serializer):
    """
    A psychologist plus the appointments picked for a payout.

    Context:
        registry: ServiceRegistry used to resolve the appointment ids
    """
    psychologist_id = serializers.CharField(max_length=100)
    appointment_ids = serializers.ListField(
        child=serializers.CharField(max_length=100),
        allow_empty=False,
        help_text='Appointments to include; at least one is required'
    )

    def validate_appointment_ids(self, value):
        if len(set(value)) != len(value):
            raise serializers.ValidationError('Appointment ids must be unique')
        return value

    def validate(self, attrs):
        """
        1. every appointment exists
        2. every appointment belongs to the selected psychologist
        """
        registry = self.context['registry']
        try:
            appointments = registry.appointments.get_many(attrs['appointment_ids'])
        except AppointmentNotFound as e:
            raise serializers.ValidationError({
                'appointment_ids': f'Unknown appointments: {", ".join(e.args[0])}'
            })

        foreign = [a.id for a in appointments if a.psychologist_id != attrs['psychologist_id']]
        if foreign:
            raise serializers.ValidationError({
                'appointment_ids': (
                    f'Appointments {", ".join(foreign)} do not belong to '
                    f'psychologist {attrs["psychologist_id"]}'
                )
            })

        attrs['appointments'] = appointments
        return attrs


class PaymentBatchCreateSerializer(AppointmentSelectionSerializer):
    """Selection that must also pass the eligibility filter."""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        ledger = self.context['registry'].ledger

        eligible_ids = {a.id for a in ledger.eligible_appointments(attrs['appointments'])}
        ineligible = [a.id for a in attrs['appointments'] if a.id not in eligible_ids]
        if ineligible:
            raise serializers.ValidationError({
                'appointment_ids': (
                    f'Appointments {", ".join(ineligible)} are not completed '
                    f'or already belong to an active payment batch'
                )
            })
        return attrs


class ContestBatchSerializer(serializers.Serializer):
    reason = serializers.CharField(
        max_length=2000,
        allow_blank=False,
        trim_whitespace=True,
        help_text='Why the psychologist rejects the batch contents'
    )


class BatchFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PaymentStatusChoices.choices, required=False)
    psychologist_id = serializers.CharField(required=False)


class EligibleAppointmentsQuerySerializer(serializers.Serializer):
    psychologist_id = serializers.CharField(required=False)
    date = serializers.DateField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({'date_to': 'date_to must not be before date_from'})
        return attrs


class BatchPreviewSerializer(serializers.Serializer):
    psychologist_id = serializers.CharField()
    commission_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    item_count = serializers.IntegerField()
    total_gross_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_net_value = serializers.DecimalField(max_digits=12, decimal_places=2)


class PsychologistTotalsSerializer(serializers.Serializer):
    psychologist_name = serializers.CharField()
    total_pending = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_approved = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_contested = serializers.DecimalField(max_digits=12, decimal_places=2)


class MonthlyPaymentSerializer(serializers.Serializer):
    month = serializers.CharField()
    psychologist = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class DashboardSerializer(serializers.Serializer):
    total_pending_payments = serializers.IntegerField()
    total_approved_payments = serializers.IntegerField()
    total_contested_payments = serializers.IntegerField()
    total_paid_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    psychologist_payments = PsychologistTotalsSerializer(many=True)
    monthly_payments = MonthlyPaymentSerializer(many=True)


class PsychologistSummarySerializer(serializers.Serializer):
    psychologist_id = serializers.CharField()
    batch_count = serializers.IntegerField()
    total_pending = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_approved = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_contested = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2)

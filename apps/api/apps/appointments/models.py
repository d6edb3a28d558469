"""
Appointment records consumed by the payment workflow.

Appointments are plain immutable records: updates replace the whole
record in the ``AppointmentStore`` rather than mutating it in place.
"""
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from django.db import models


class AppointmentStatusChoices(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    CANCELLED = 'cancelled', 'Cancelled'
    COMPLETED = 'completed', 'Completed'


class PaymentMethodChoices(models.TextChoices):
    PRIVATE = 'private', 'Private'
    INSURANCE = 'insurance', 'Insurance'


class RecurrenceChoices(models.TextChoices):
    WEEKLY = 'weekly', 'Weekly'
    BIWEEKLY = 'biweekly', 'Biweekly'
    MONTHLY = 'monthly', 'Monthly'


@dataclass(frozen=True)
class Appointment:
    id: str
    psychologist_id: str
    psychologist_name: str
    patient_name: str
    date: date
    start_time: time
    end_time: time
    value: Decimal
    status: str = AppointmentStatusChoices.PENDING
    payment_method: str = PaymentMethodChoices.PRIVATE
    insurance_type: Optional[str] = None
    authorization_token: Optional[str] = None
    is_recurring: bool = False
    recurrence_type: Optional[str] = None

    @property
    def is_completed(self):
        return self.status == AppointmentStatusChoices.COMPLETED

    @property
    def is_rescheduled(self):
        # Recurring series are the only reschedule signal the records carry
        return bool(self.is_recurring and self.recurrence_type)


@dataclass(frozen=True)
class AppointmentStatusSummary:
    period: str
    start: date
    end: date
    pending: int
    confirmed: int
    cancelled: int
    completed: int
    rescheduled: int
    total: int

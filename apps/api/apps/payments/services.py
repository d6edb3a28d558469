"""
Payment service helpers - commission math and batch eligibility.

Pure functions over appointments and batches; the ledger owns all state.
"""
import uuid
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Set, Tuple

from apps.appointments.models import Appointment
from apps.payments.models import PaymentBatch, PaymentItem, ZERO

CENTS = Decimal('0.01')


def calculate_net_value(gross_value, commission_percentage) -> Decimal:
    """
    Psychologist share of one appointment: gross x percentage / 100,
    quantized to cents (half up).

    The stored value is the rounded share, not the exact product: 10.05 at
    50% gives 5.03 rather than 5.025. Batch totals are then exact sums of
    the amounts shown on each item.
    """
    net = Decimal(gross_value) * Decimal(commission_percentage) / Decimal('100')
    return net.quantize(CENTS, rounding=ROUND_HALF_UP)


def build_items(batch_id: str, appointments: Iterable[Appointment], commission_percentage) -> List[PaymentItem]:
    """One PaymentItem per appointment, in the given order."""
    percentage = Decimal(commission_percentage)
    return [
        PaymentItem(
            id=str(uuid.uuid4()),
            payment_batch_id=batch_id,
            appointment_id=appointment.id,
            appointment_date=appointment.date,
            patient_name=appointment.patient_name,
            gross_value=Decimal(appointment.value),
            commission_percentage=percentage,
            net_value=calculate_net_value(appointment.value, percentage),
        )
        for appointment in appointments
    ]


def sum_items(items: Iterable[PaymentItem]) -> Tuple[Decimal, Decimal]:
    """(total gross, total net) of the items."""
    total_gross = ZERO
    total_net = ZERO
    for item in items:
        total_gross += item.gross_value
        total_net += item.net_value
    return total_gross, total_net


def claimed_appointment_ids(batches: Iterable[PaymentBatch]) -> Set[str]:
    """
    Appointment ids held by a pending, approved or paid batch.

    Contested batches release their appointments.
    """
    claimed = set()
    for batch in batches:
        if batch.claims_appointments:
            claimed.update(batch.appointment_ids)
    return claimed


def filter_eligible_appointments(
    appointments: Iterable[Appointment],
    batches: Iterable[PaymentBatch],
    psychologist_id=None,
    on_date: Optional[date] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[Appointment]:
    """
    Appointments that may go into a new batch.

    An appointment is eligible when it is completed and no claiming batch
    references it. Optional filters narrow by psychologist and date.
    """
    claimed = claimed_appointment_ids(batches)
    eligible = []
    for appointment in appointments:
        if not appointment.is_completed:
            continue
        if appointment.id in claimed:
            continue
        if psychologist_id is not None and appointment.psychologist_id != str(psychologist_id):
            continue
        if on_date is not None and appointment.date != on_date:
            continue
        if date_from is not None and appointment.date < date_from:
            continue
        if date_to is not None and appointment.date > date_to:
            continue
        eligible.append(appointment)
    return eligible

"""
Payment ledger records.

PaymentStatusChoices state machine:
- pending -> approved | contested
- contested -> approved (re-enters the workflow after admin review)
- approved -> paid
- paid -> (terminal)

The ledger only enforces these transitions in strict mode; see
``apps.payments.ledger``.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from django.db import models


class PaymentStatusChoices(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    CONTESTED = 'contested', 'Contested'
    PAID = 'paid', 'Paid'

    @classmethod
    def get_valid_transitions(cls):
        """
        Get valid status transitions.

        Returns dict: {current_status: [allowed_next_statuses]}
        """
        return {
            cls.PENDING.value: [cls.APPROVED.value, cls.CONTESTED.value],
            cls.CONTESTED.value: [cls.APPROVED.value],
            cls.APPROVED.value: [cls.PAID.value],
            cls.PAID.value: [],  # Terminal
        }

    @classmethod
    def can_transition(cls, from_status, to_status):
        return str(to_status) in cls.get_valid_transitions().get(str(from_status), [])


# Batch statuses that keep their appointments out of new batches
CLAIMING_STATUSES = frozenset({
    PaymentStatusChoices.PENDING.value,
    PaymentStatusChoices.APPROVED.value,
    PaymentStatusChoices.PAID.value,
})

ZERO = Decimal('0.00')


@dataclass(frozen=True)
class PaymentItem:
    id: str
    payment_batch_id: str
    appointment_id: str
    appointment_date: date
    patient_name: str
    gross_value: Decimal
    commission_percentage: Decimal
    net_value: Decimal


@dataclass(frozen=True)
class PaymentBatch:
    """
    A commission payout covering a fixed set of appointments.

    Names are point-in-time copies taken at creation; they do not follow
    later renames of the psychologist or creator.
    """
    id: str
    psychologist_id: str
    psychologist_name: str
    created_by: str
    created_by_name: str
    created_at: datetime
    total_gross_value: Decimal
    total_net_value: Decimal
    appointment_ids: Tuple[str, ...]
    status: str = PaymentStatusChoices.PENDING.value
    contestation_reason: Optional[str] = None
    contested_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @property
    def claims_appointments(self):
        return self.status in CLAIMING_STATUSES

    @property
    def is_terminal(self):
        return self.status == PaymentStatusChoices.PAID


@dataclass(frozen=True)
class PsychologistTotals:
    psychologist_name: str
    total_pending: Decimal = ZERO
    total_approved: Decimal = ZERO
    total_contested: Decimal = ZERO


@dataclass(frozen=True)
class MonthlyPayment:
    month: str
    psychologist: str
    amount: Decimal


@dataclass(frozen=True)
class DashboardSnapshot:
    total_pending_payments: int = 0
    total_approved_payments: int = 0
    total_contested_payments: int = 0
    total_paid_amount: Decimal = ZERO
    psychologist_payments: Tuple[PsychologistTotals, ...] = field(default_factory=tuple)
    monthly_payments: Tuple[MonthlyPayment, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PsychologistSummary:
    """A psychologist's own view of their payouts."""
    psychologist_id: str
    batch_count: int
    total_pending: Decimal
    total_approved: Decimal
    total_contested: Decimal
    total_paid: Decimal


@dataclass(frozen=True)
class BatchPreview:
    """Totals a batch would have, computed without touching the ledger."""
    psychologist_id: str
    commission_percentage: Decimal
    item_count: int
    total_gross_value: Decimal
    total_net_value: Decimal

"""
Dashboard statistics derived from the full batch list.

``compute_dashboard`` is a pure function: it keeps no state between calls,
so the ledger can run it after every mutation and always get a snapshot
that matches the current batches exactly.
"""
from typing import Dict, Iterable, List, Tuple

from apps.core.observability import metrics
from apps.payments.models import (
    DashboardSnapshot,
    MonthlyPayment,
    PaymentBatch,
    PaymentStatusChoices,
    PsychologistTotals,
    ZERO,
)

PENDING = PaymentStatusChoices.PENDING.value
APPROVED = PaymentStatusChoices.APPROVED.value
CONTESTED = PaymentStatusChoices.CONTESTED.value
PAID = PaymentStatusChoices.PAID.value


def _psychologist_totals(batches: List[PaymentBatch]) -> Tuple[PsychologistTotals, ...]:
    # Grouped by the denormalized name, in order of first appearance
    groups: Dict[str, Dict[str, object]] = {}
    for batch in batches:
        totals = groups.setdefault(
            batch.psychologist_name,
            {PENDING: ZERO, APPROVED: ZERO, CONTESTED: ZERO},
        )
        if batch.status in totals:
            totals[batch.status] += batch.total_net_value

    return tuple(
        PsychologistTotals(
            psychologist_name=name,
            total_pending=totals[PENDING],
            total_approved=totals[APPROVED],
            total_contested=totals[CONTESTED],
        )
        for name, totals in groups.items()
    )


def _monthly_payments(batches: List[PaymentBatch]) -> Tuple[MonthlyPayment, ...]:
    amounts: Dict[Tuple[str, str], object] = {}
    for batch in batches:
        if batch.status != PAID or batch.paid_at is None:
            continue
        key = (batch.paid_at.strftime('%Y-%m'), batch.psychologist_name)
        amounts[key] = amounts.get(key, ZERO) + batch.total_net_value

    # Stable sort keeps first-appearance order within a month
    ordered = sorted(amounts.items(), key=lambda entry: entry[0][0])
    return tuple(
        MonthlyPayment(month=month, psychologist=psychologist, amount=amount)
        for (month, psychologist), amount in ordered
    )


@metrics.track_duration(metrics.payment_dashboard_refresh_duration_seconds)
def compute_dashboard(batches: Iterable[PaymentBatch]) -> DashboardSnapshot:
    """
    Recompute every dashboard figure from ``batches``.

    - counts of pending, approved and contested batches
    - total net value of paid batches
    - per psychologist: net value pending, approved and contested
    - per month of payment and psychologist: net value paid
    """
    batches = list(batches)

    counts = {PENDING: 0, APPROVED: 0, CONTESTED: 0, PAID: 0}
    total_paid = ZERO
    for batch in batches:
        counts[batch.status] = counts.get(batch.status, 0) + 1
        if batch.status == PAID:
            total_paid += batch.total_net_value

    for status, count in counts.items():
        metrics.payment_batches_by_status.labels(status=status).set(count)

    return DashboardSnapshot(
        total_pending_payments=counts[PENDING],
        total_approved_payments=counts[APPROVED],
        total_contested_payments=counts[CONTESTED],
        total_paid_amount=total_paid,
        psychologist_payments=_psychologist_totals(batches),
        monthly_payments=_monthly_payments(batches),
    )

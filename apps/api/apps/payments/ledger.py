"""
Payment ledger - owns payment batches and items.

The ledger is the only writer of batch state. Every mutation appends or
replaces whole records under a lock, recomputes the dashboard in the same
call, and then reports a notification.

Compatibility vs. strict mode:
    By default (``strict=False``) unknown batch ids return None and the
    source status of a transition is not checked. With ``strict=True`` the
    ledger raises ``BatchNotFound``, ``InvalidTransition``, ``EmptyBatch``,
    ``MixedPsychologists`` and ``BlankContestationReason`` instead.

    In both modes an appointment already held by a pending, approved or paid
    batch is refused with ``AppointmentsAlreadyClaimed``; the check runs under
    the same lock as the write.
"""
import threading
import uuid
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from django.utils import timezone

from apps.appointments.models import Appointment
from apps.authz.directory import PsychologistDirectory
from apps.core.notifications import NotificationLevel, Notifier
from apps.core.observability import metrics, get_sanitized_logger
from apps.core.observability.events import (
    log_batch_created,
    log_batch_transition,
    log_consistency_checkpoint,
    log_domain_event,
    log_transition_blocked,
    log_transition_ignored,
)
from apps.core.observability.tracing import add_span_attribute, trace_span
from apps.payments.dashboard import compute_dashboard
from apps.payments.exceptions import (
    AppointmentsAlreadyClaimed,
    BatchNotFound,
    BlankContestationReason,
    EmptyBatch,
    InvalidTransition,
    MixedPsychologists,
)
from apps.payments.models import (
    BatchPreview,
    DashboardSnapshot,
    PaymentBatch,
    PaymentItem,
    PaymentStatusChoices,
    PsychologistSummary,
    ZERO,
)
from apps.payments.services import (
    build_items,
    claimed_appointment_ids,
    filter_eligible_appointments,
    sum_items,
)

logger = get_sanitized_logger(__name__)

DEFAULT_COMMISSION_PERCENTAGE = Decimal('50')


class PaymentLedger:
    """
    In-memory store of payment batches with their state machine.

    Args:
        directory: resolves commission percentages and names
        notifier: receives one message per successful mutation
        strict: enforce ids, transitions and inputs (see module docstring)
        default_commission: percentage used when the directory has none
        currency: currency code used in notification messages
        clock: returns the current aware datetime
    """

    def __init__(
        self,
        directory: PsychologistDirectory,
        notifier: Notifier,
        strict: bool = False,
        default_commission=DEFAULT_COMMISSION_PERCENTAGE,
        currency: str = 'BRL',
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.directory = directory
        self.notifier = notifier
        self.strict = strict
        self.default_commission = Decimal(default_commission)
        self.currency = currency
        self._clock = clock
        self._lock = threading.RLock()
        self._batches: List[PaymentBatch] = []
        self._items: List[PaymentItem] = []
        self._dashboard = compute_dashboard([])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def batches(self) -> List[PaymentBatch]:
        return list(self._batches)

    @property
    def items(self) -> List[PaymentItem]:
        return list(self._items)

    @property
    def dashboard(self) -> DashboardSnapshot:
        """Snapshot computed after the most recent mutation."""
        return self._dashboard

    def get_batch(self, batch_id) -> Optional[PaymentBatch]:
        index = self._index_of(batch_id)
        return self._batches[index] if index is not None else None

    def list_batches(self, status=None, psychologist_id=None) -> List[PaymentBatch]:
        batches = self.batches
        if status is not None:
            batches = [b for b in batches if b.status == status]
        if psychologist_id is not None:
            batches = [b for b in batches if b.psychologist_id == str(psychologist_id)]
        return batches

    def items_for_batch(self, batch_id) -> List[PaymentItem]:
        return [item for item in self._items if item.payment_batch_id == str(batch_id)]

    def batches_for_psychologist(self, psychologist_id) -> List[PaymentBatch]:
        return [b for b in self._batches if b.psychologist_id == str(psychologist_id)]

    def eligible_appointments(
        self,
        appointments: Iterable[Appointment],
        psychologist_id=None,
        on_date: Optional[date] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        """Completed appointments not held by a pending, approved or paid batch."""
        return filter_eligible_appointments(
            appointments,
            self._batches,
            psychologist_id=psychologist_id,
            on_date=on_date,
            date_from=date_from,
            date_to=date_to,
        )

    def commission_for(self, psychologist_id) -> Decimal:
        return self.directory.commission_for(psychologist_id, default=self.default_commission)

    def preview_totals(self, psychologist_id, appointments: Iterable[Appointment]) -> BatchPreview:
        """Totals a batch of ``appointments`` would get, without creating it."""
        percentage = self.commission_for(psychologist_id)
        items = build_items('preview', appointments, percentage)
        total_gross, total_net = sum_items(items)
        return BatchPreview(
            psychologist_id=str(psychologist_id),
            commission_percentage=percentage,
            item_count=len(items),
            total_gross_value=total_gross,
            total_net_value=total_net,
        )

    def psychologist_summary(self, psychologist_id) -> PsychologistSummary:
        batches = self.batches_for_psychologist(psychologist_id)
        totals = {status: ZERO for status in PaymentStatusChoices.values}
        for batch in batches:
            totals[batch.status] += batch.total_net_value
        return PsychologistSummary(
            psychologist_id=str(psychologist_id),
            batch_count=len(batches),
            total_pending=totals[PaymentStatusChoices.PENDING.value],
            total_approved=totals[PaymentStatusChoices.APPROVED.value],
            total_contested=totals[PaymentStatusChoices.CONTESTED.value],
            total_paid=totals[PaymentStatusChoices.PAID.value],
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_batch(self, psychologist_id, appointments: Iterable[Appointment], creator) -> PaymentBatch:
        """
        Create a pending batch paying ``psychologist_id`` for ``appointments``.

        Each appointment becomes a PaymentItem with the psychologist's
        commission percentage (clinic default when none is configured).
        Batch totals are the sums of the item values.

        Args:
            psychologist_id: psychologist receiving the payout
            appointments: appointments to include
            creator: acting user; ``id`` and ``name`` are copied onto the batch

        Raises:
            AppointmentsAlreadyClaimed: an appointment is held by another
                pending, approved or paid batch (both modes)
            EmptyBatch: no appointments (strict mode)
            MixedPsychologists: an appointment belongs to someone else (strict mode)
        """
        appointments = list(appointments)
        psychologist_id = str(psychologist_id)

        if self.strict:
            if not appointments:
                raise EmptyBatch()
            foreign = [a.id for a in appointments if a.psychologist_id != psychologist_id]
            if foreign:
                raise MixedPsychologists(psychologist_id, foreign)

        with trace_span('payment_batch_create', attributes={
            'psychologist_id': psychologist_id,
            'appointment_count': len(appointments),
        }):
            percentage = self.commission_for(psychologist_id)
            batch_id = str(uuid.uuid4())
            items = build_items(batch_id, appointments, percentage)
            total_gross, total_net = sum_items(items)

            if appointments and appointments[0].psychologist_name:
                psychologist_name = appointments[0].psychologist_name
            else:
                psychologist_name = self.directory.display_name(psychologist_id)

            batch = PaymentBatch(
                id=batch_id,
                psychologist_id=psychologist_id,
                psychologist_name=psychologist_name,
                created_by=str(creator.id),
                created_by_name=getattr(creator, 'name', '') or '',
                created_at=self._clock(),
                total_gross_value=total_gross,
                total_net_value=total_net,
                appointment_ids=tuple(a.id for a in appointments),
            )

            with self._lock:
                claimed = claimed_appointment_ids(self._batches)
                taken = [a.id for a in appointments if a.id in claimed]
                if taken:
                    metrics.payment_batches_created_total.labels(result='conflict').inc()
                    log_domain_event(
                        'payment_batch_created',
                        entity_type='PaymentBatch',
                        entity_ids={'psychologist_id': psychologist_id},
                        result='blocked',
                        appointment_ids=taken,
                    )
                    raise AppointmentsAlreadyClaimed(taken)
                self._batches.append(batch)
                self._items.extend(items)
                self._refresh()

            add_span_attribute('batch_id', batch.id)

        metrics.payment_batches_created_total.labels(result='success').inc()
        log_batch_created(batch, len(items), percentage)
        stored_gross, stored_net = sum_items(self.items_for_batch(batch.id))
        log_consistency_checkpoint(
            'payment_batch_totals',
            entity_ids={'batch_id': batch.id},
            checks_passed={
                'gross_matches_items': batch.total_gross_value == stored_gross,
                'net_matches_items': batch.total_net_value == stored_net,
                'one_item_per_appointment': len(items) == len(batch.appointment_ids),
            },
            item_count=len(items),
        )

        self._notify(
            'Payment batch created',
            f'Payment of {self.currency} {batch.total_net_value:.2f} created for {batch.psychologist_name}',
        )
        return batch

    def approve(self, batch_id) -> Optional[PaymentBatch]:
        """Mark the batch approved by the psychologist and stamp ``approved_at``."""
        batch = self._transition(
            batch_id,
            PaymentStatusChoices.APPROVED.value,
            approved_at=self._clock(),
        )
        if batch is not None:
            self._notify('Payment approved', 'The payment batch was approved by the psychologist')
        return batch

    def contest(self, batch_id, reason: str) -> Optional[PaymentBatch]:
        """Send the batch back for review with the psychologist's ``reason``."""
        if self.strict and not (reason or '').strip():
            raise BlankContestationReason()

        batch = self._transition(
            batch_id,
            PaymentStatusChoices.CONTESTED.value,
            contestation_reason=reason,
            contested_at=self._clock(),
        )
        if batch is not None:
            self._notify(
                'Payment contested',
                'The payment batch was contested and will return for review',
                level=NotificationLevel.WARNING,
            )
        return batch

    def mark_paid(self, batch_id) -> Optional[PaymentBatch]:
        """Record the payout and stamp ``paid_at``."""
        batch = self._transition(
            batch_id,
            PaymentStatusChoices.PAID.value,
            paid_at=self._clock(),
        )
        if batch is not None:
            self._notify('Payment settled', 'The payment was marked as paid')
        return batch

    def refresh_dashboard(self) -> DashboardSnapshot:
        """Recompute the dashboard from the current batches."""
        with self._lock:
            return self._refresh()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_of(self, batch_id) -> Optional[int]:
        batch_id = str(batch_id)
        for index, batch in enumerate(self._batches):
            if batch.id == batch_id:
                return index
        return None

    def _refresh(self) -> DashboardSnapshot:
        self._dashboard = compute_dashboard(self._batches)
        return self._dashboard

    def _transition(self, batch_id, to_status: str, **changes) -> Optional[PaymentBatch]:
        with self._lock:
            index = self._index_of(batch_id)
            if index is None:
                metrics.payment_batch_transitions_total.labels(
                    from_status='unknown',
                    to_status=to_status,
                    result='not_found'
                ).inc()
                log_transition_ignored(str(batch_id), to_status)
                if self.strict:
                    raise BatchNotFound(batch_id)
                return None

            current = self._batches[index]
            from_status = current.status

            if self.strict and not PaymentStatusChoices.can_transition(from_status, to_status):
                metrics.payment_batch_transitions_total.labels(
                    from_status=from_status,
                    to_status=to_status,
                    result='invalid_transition'
                ).inc()
                log_transition_blocked(current, to_status, reason='invalid_transition')
                raise InvalidTransition(
                    current.id,
                    from_status,
                    to_status,
                    PaymentStatusChoices.get_valid_transitions().get(from_status, []),
                )

            updated = replace(current, status=to_status, **changes)
            self._batches[index] = updated
            self._refresh()

        metrics.payment_batch_transitions_total.labels(
            from_status=from_status,
            to_status=to_status,
            result='success'
        ).inc()
        log_batch_transition(updated, from_status, to_status)
        return updated

    def _notify(self, title, message, level=NotificationLevel.SUCCESS):
        # A failing sink must never undo the mutation that triggered it
        try:
            self.notifier.notify(title, message, level)
        except Exception as e:
            metrics.payment_notifications_failed_total.labels(sink='notifier').inc()
            logger.error(
                'Notification delivery failed',
                exc_info=True,
                extra={'event': 'notification_failed', 'title': title, 'error': str(e)}
            )

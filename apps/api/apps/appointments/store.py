"""
In-memory appointment store.

The payment ledger never mutates appointments; its callers look them up
here to check completion status and to pick eligible ones for a batch.
"""
import threading
import uuid
from collections import Counter
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional

from apps.appointments.models import (
    Appointment,
    AppointmentStatusChoices,
    AppointmentStatusSummary,
)
from apps.appointments.periods import PeriodChoices, period_range
from apps.core.observability import metrics, log_domain_event


class AppointmentNotFound(LookupError):
    pass


class AppointmentStore:
    """Insertion-ordered appointment records keyed by id."""

    def __init__(self, appointments: Iterable[Appointment] = ()):
        self._lock = threading.RLock()
        self._records = {}
        for appointment in appointments:
            self.add(appointment)

    def add(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id in self._records:
                raise ValueError(f'Appointment {appointment.id} already exists')
            self._records[appointment.id] = appointment

        metrics.appointments_written_total.labels(action='create').inc()
        log_domain_event(
            'appointment_created',
            entity_type='Appointment',
            entity_id=appointment.id,
            entity_ids={'psychologist_id': appointment.psychologist_id},
            status=appointment.status,
        )
        return appointment

    def create(self, **fields) -> Appointment:
        """Add a new appointment with a generated id."""
        return self.add(Appointment(id=str(uuid.uuid4()), **fields))

    def get(self, appointment_id) -> Optional[Appointment]:
        return self._records.get(str(appointment_id))

    def get_many(self, appointment_ids: Iterable[str]) -> List[Appointment]:
        """
        Resolve ids in the given order.

        Raises:
            AppointmentNotFound: listing every id that is not in the store
        """
        ids = [str(appointment_id) for appointment_id in appointment_ids]
        missing = [appointment_id for appointment_id in ids if appointment_id not in self._records]
        if missing:
            raise AppointmentNotFound(missing)
        return [self._records[appointment_id] for appointment_id in ids]

    def update(self, appointment_id, **changes) -> Optional[Appointment]:
        """
        Replace the record with a copy carrying ``changes``.

        Returns None when the id is unknown.
        """
        with self._lock:
            current = self._records.get(str(appointment_id))
            if current is None:
                return None
            updated = replace(current, **changes)
            self._records[current.id] = updated

        metrics.appointments_written_total.labels(action='update').inc()
        if 'status' in changes and changes['status'] != current.status:
            log_domain_event(
                'appointment_status_changed',
                entity_type='Appointment',
                entity_id=current.id,
                from_status=current.status,
                to_status=updated.status,
            )
        return updated

    def list(
        self,
        psychologist_id=None,
        status=None,
        on_date: Optional[date] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[Appointment]:
        appointments = list(self._records.values())
        if psychologist_id is not None:
            appointments = [a for a in appointments if a.psychologist_id == str(psychologist_id)]
        if status is not None:
            appointments = [a for a in appointments if a.status == status]
        if on_date is not None:
            appointments = [a for a in appointments if a.date == on_date]
        if date_from is not None:
            appointments = [a for a in appointments if a.date >= date_from]
        if date_to is not None:
            appointments = [a for a in appointments if a.date <= date_to]
        return appointments

    def status_summary(self, period: str, today: date, psychologist_id=None) -> AppointmentStatusSummary:
        """Count appointments per status within the reporting period."""
        if period not in PeriodChoices.values:
            period = PeriodChoices.MONTH
        start, end = period_range(period, today)
        appointments = self.list(psychologist_id=psychologist_id, date_from=start, date_to=end)
        counts = Counter(str(a.status) for a in appointments)

        return AppointmentStatusSummary(
            period=period,
            start=start,
            end=end,
            pending=counts[AppointmentStatusChoices.PENDING.value],
            confirmed=counts[AppointmentStatusChoices.CONFIRMED.value],
            cancelled=counts[AppointmentStatusChoices.CANCELLED.value],
            completed=counts[AppointmentStatusChoices.COMPLETED.value],
            rescheduled=sum(1 for a in appointments if a.is_rescheduled),
            total=len(appointments),
        )

    def __len__(self):
        return len(self._records)

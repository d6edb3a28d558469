"""
Psychologist directory.

Holds the clinic's psychologists and the commission percentage configured
for each one. The payment ledger resolves the rate here when a batch is
created; anything unresolved falls back to the clinic default.
"""
import threading
from dataclasses import replace
from decimal import Decimal
from typing import Iterable, List, Optional

from apps.authz.models import Psychologist
from apps.core.observability import get_sanitized_logger, log_domain_event

logger = get_sanitized_logger(__name__)


def _as_percentage(value) -> Optional[Decimal]:
    if value is None:
        return None
    percentage = Decimal(str(value))
    if percentage < 0 or percentage > 100:
        raise ValueError(f'Commission percentage must be between 0 and 100, got {percentage}')
    return percentage


class PsychologistDirectory:
    """In-memory registry of psychologists, keyed by user id."""

    def __init__(self, psychologists: Iterable[Psychologist] = ()):
        self._lock = threading.RLock()
        self._entries = {}
        for psychologist in psychologists:
            self.register(psychologist)

    @classmethod
    def from_config(cls, entries) -> 'PsychologistDirectory':
        """
        Build a directory from settings-style dicts.

        Example:
            [{'id': 'psy-1', 'name': 'Dr. Ana', 'commission_percentage': 60}]
        """
        return cls(
            Psychologist(
                id=str(entry['id']),
                name=entry.get('name', ''),
                commission_percentage=_as_percentage(entry.get('commission_percentage')),
                is_active=entry.get('is_active', True),
            )
            for entry in entries
        )

    def register(self, psychologist: Psychologist) -> Psychologist:
        """Add or fully replace a directory entry."""
        psychologist = replace(
            psychologist,
            id=str(psychologist.id),
            commission_percentage=_as_percentage(psychologist.commission_percentage),
        )
        with self._lock:
            created = psychologist.id not in self._entries
            self._entries[psychologist.id] = psychologist

        log_domain_event(
            'psychologist_registered' if created else 'psychologist_updated',
            entity_type='Psychologist',
            entity_id=psychologist.id,
            commission_percentage=str(psychologist.commission_percentage),
        )
        return psychologist

    def get(self, psychologist_id) -> Optional[Psychologist]:
        return self._entries.get(str(psychologist_id))

    def list(self, include_inactive: bool = False) -> List[Psychologist]:
        entries = sorted(self._entries.values(), key=lambda p: p.name)
        if include_inactive:
            return entries
        return [p for p in entries if p.is_active]

    def commission_for(self, psychologist_id, default: Decimal) -> Decimal:
        """Configured commission percentage, or ``default`` when unresolved."""
        psychologist = self.get(psychologist_id)
        if psychologist is None or psychologist.commission_percentage is None:
            return Decimal(default)
        return psychologist.commission_percentage

    def display_name(self, psychologist_id) -> str:
        psychologist = self.get(psychologist_id)
        return psychologist.name if psychologist else ''

    def __len__(self):
        return len(self._entries)

"""
Composition root for the in-memory clinic services.

One ``ServiceRegistry`` is built when Django starts (``CoreConfig.ready``)
and handed to views through ``get_registry()``. Tests install a fresh one
per test with ``install_registry(build_registry())``.
"""
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from apps.appointments.store import AppointmentStore
from apps.authz.directory import PsychologistDirectory
from apps.core.notifications import Notifier
from apps.core.observability import get_sanitized_logger
from apps.payments.ledger import PaymentLedger

logger = get_sanitized_logger(__name__)

DEFAULT_PAYMENTS_CONFIG = {
    'DEFAULT_COMMISSION_PERCENTAGE': 50,
    'STRICT_TRANSITIONS': False,
    'NOTIFICATION_HISTORY_SIZE': 100,
    'CURRENCY': 'BRL',
    'PSYCHOLOGISTS': [],
}


@dataclass
class ServiceRegistry:
    directory: PsychologistDirectory
    appointments: AppointmentStore
    notifier: Notifier
    ledger: PaymentLedger


def payments_config(overrides=None):
    config = dict(DEFAULT_PAYMENTS_CONFIG)
    config.update(getattr(settings, 'PAYMENTS', {}) or {})
    config.update(overrides or {})
    return config


def build_registry(**overrides) -> ServiceRegistry:
    """
    Build every service from the ``PAYMENTS`` settings dict.

    Keyword overrides replace individual settings keys, e.g.
    ``build_registry(STRICT_TRANSITIONS=True)``.
    """
    config = payments_config(overrides)

    directory = PsychologistDirectory.from_config(config['PSYCHOLOGISTS'])
    notifier = Notifier(history_size=config['NOTIFICATION_HISTORY_SIZE'])
    ledger = PaymentLedger(
        directory=directory,
        notifier=notifier,
        strict=config['STRICT_TRANSITIONS'],
        default_commission=config['DEFAULT_COMMISSION_PERCENTAGE'],
        currency=config['CURRENCY'],
    )

    logger.info(
        'Clinic services built',
        extra={
            'event': 'registry_built',
            'strict_transitions': ledger.strict,
            'psychologist_count': len(directory),
        }
    )
    return ServiceRegistry(
        directory=directory,
        appointments=AppointmentStore(),
        notifier=notifier,
        ledger=ledger,
    )


_registry: Optional[ServiceRegistry] = None


def install_registry(registry: ServiceRegistry) -> ServiceRegistry:
    global _registry
    _registry = registry
    return registry


def get_registry() -> ServiceRegistry:
    if _registry is None:
        return install_registry(build_registry())
    return _registry


def reset_registry():
    """Drop the current services; the next ``get_registry()`` rebuilds them."""
    global _registry
    _registry = None


def is_ready() -> bool:
    return _registry is not None

"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- A fresh in-memory service registry per test
- Authenticated API clients by role (stateless token users)
- Appointment records in the registry's appointment store
"""
import itertools
from datetime import date, time
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from apps.appointments.models import Appointment
from apps.authz.identity import ClinicUser
from apps.authz.models import RoleChoices
from apps.core.registry import build_registry, get_registry, install_registry, reset_registry

PSYCHOLOGISTS = [
    # No configured rate: the clinic default (50%) applies
    {'id': 'psy-1', 'name': 'Dr. Ana Souza'},
    {'id': 'psy-2', 'name': 'Dr. Bruno Lima', 'commission_percentage': 40},
]


def clinic_user(user_id, name, role):
    """Token user as ClinicJWTAuthentication would build it from claims."""
    return ClinicUser({'user_id': user_id, 'name': name, 'role': role})


# ============================================================================
# Services
# ============================================================================

@pytest.fixture(autouse=True)
def services():
    """
    Fresh registry for every test.

    Compatibility mode (non-strict) with two psychologists in the directory.
    """
    registry = install_registry(build_registry(
        PSYCHOLOGISTS=PSYCHOLOGISTS,
        STRICT_TRANSITIONS=False,
        DEFAULT_COMMISSION_PERCENTAGE=50,
    ))
    yield registry
    reset_registry()


@pytest.fixture
def strict_services(services):
    """Registry whose ledger enforces the batch state machine."""
    return install_registry(build_registry(
        PSYCHOLOGISTS=PSYCHOLOGISTS,
        STRICT_TRANSITIONS=True,
        DEFAULT_COMMISSION_PERCENTAGE=50,
    ))


@pytest.fixture
def ledger(services):
    return services.ledger


# ============================================================================
# Users and API Clients
# ============================================================================

@pytest.fixture
def admin_user():
    return clinic_user('admin-1', 'Carla Admin', RoleChoices.ADMIN.value)


@pytest.fixture
def receptionist_user():
    return clinic_user('recep-1', 'Rita Recepção', RoleChoices.RECEPTIONIST.value)


@pytest.fixture
def psychologist_user():
    return clinic_user('psy-1', 'Dr. Ana Souza', RoleChoices.PSYCHOLOGIST.value)


@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


def _authenticated(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def admin_client(admin_user):
    """Admin: full access, including directory changes."""
    return _authenticated(admin_user)


@pytest.fixture
def receptionist_client(receptionist_user):
    """Receptionist: appointments, batch creation and payouts."""
    return _authenticated(receptionist_user)


@pytest.fixture
def psychologist_client(psychologist_user):
    """Psychologist psy-1: reviews their own batches."""
    return _authenticated(psychologist_user)


@pytest.fixture
def other_psychologist_client():
    """Psychologist psy-2."""
    return _authenticated(clinic_user('psy-2', 'Dr. Bruno Lima', RoleChoices.PSYCHOLOGIST.value))


# ============================================================================
# Appointments
# ============================================================================

@pytest.fixture
def make_appointment():
    """
    Factory adding an appointment to the registry's store.

    Resolves the registry at call time, so it also feeds ``strict_services``.
    Defaults to a completed, private R$ 100.00 session with Dr. Ana Souza.
    """
    counter = itertools.count(1)

    def factory(**overrides):
        fields = {
            'id': f'appt-{next(counter)}',
            'psychologist_id': 'psy-1',
            'psychologist_name': 'Dr. Ana Souza',
            'patient_name': 'Maria Silva',
            'date': date(2024, 3, 4),
            'start_time': time(9, 0),
            'end_time': time(9, 50),
            'value': Decimal('100.00'),
            'status': 'completed',
        }
        fields.update(overrides)
        appointment_id = fields.pop('id')
        return get_registry().appointments.add(Appointment(id=appointment_id, **fields))

    return factory

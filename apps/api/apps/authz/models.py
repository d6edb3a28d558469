"""
Authz domain types.

Identity and session storage live outside this service; the acting user
arrives as JWT claims (see ``apps.authz.identity``). The clinic's
psychologists and their commission rates are kept in the in-memory
``PsychologistDirectory``.
"""
from dataclasses import dataclass
from decimal import Decimal

from django.db import models


class RoleChoices(models.TextChoices):
    """Fixed role names carried in the ``role`` token claim."""
    ADMIN = 'admin', 'Admin'
    RECEPTIONIST = 'receptionist', 'Receptionist'
    PSYCHOLOGIST = 'psychologist', 'Psychologist'


# Roles that run the clinic's back office (batch creation, payouts)
STAFF_ROLES = frozenset({RoleChoices.ADMIN.value, RoleChoices.RECEPTIONIST.value})


@dataclass(frozen=True)
class Psychologist:
    """
    Directory entry for a psychologist.

    commission_percentage: share of each appointment's gross value paid to
    the psychologist (0-100). None means "use the clinic default".
    """
    id: str
    name: str
    commission_percentage: Decimal = None
    is_active: bool = True

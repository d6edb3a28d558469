"""
Stateless JWT identity.

The token is issued elsewhere (see the ``issue_token`` command for local
use); this service only validates it and reads the ``user_id``, ``name``
and ``role`` claims. No user table is consulted.
"""
from django.utils.functional import cached_property
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.models import TokenUser

from apps.authz.models import RoleChoices, STAFF_ROLES
from apps.core.observability.correlation import bind_user_context


class ClinicUser(TokenUser):
    """Token-backed user exposing the clinic's identity claims."""

    @cached_property
    def name(self):
        return self.token.get('name', '')

    @cached_property
    def role(self):
        return self.token.get('role', '')

    @property
    def is_admin(self):
        return self.role == RoleChoices.ADMIN

    @property
    def is_psychologist(self):
        return self.role == RoleChoices.PSYCHOLOGIST

    @property
    def is_clinic_staff(self):
        return self.role in STAFF_ROLES

    def __str__(self):
        return f'{self.name or self.id} ({self.role})'


class ClinicJWTAuthentication(JWTStatelessUserAuthentication):
    """Bearer token authentication that also binds the log correlation context."""

    def authenticate(self, request):
        result = super().authenticate(request)
        if result is not None:
            user, _token = result
            bind_user_context(user.id, [user.role])
        return result

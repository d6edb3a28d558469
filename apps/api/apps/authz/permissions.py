"""
Role-based DRF permissions.

Roles come from the ``role`` claim of the bearer token:
- Admin: full access, including directory changes
- Receptionist: creates batches and settles payouts
- Psychologist: reviews (approves or contests) their own batches
"""
from rest_framework import permissions

from apps.authz.models import RoleChoices, STAFF_ROLES


def user_role(request):
    if not request.user or not request.user.is_authenticated:
        return None
    return getattr(request.user, 'role', None)


class IsAdmin(permissions.BasePermission):
    """Only Admin role users."""

    message = 'This operation requires the admin role.'

    def has_permission(self, request, view):
        return user_role(request) == RoleChoices.ADMIN


class IsClinicStaff(permissions.BasePermission):
    """Admin or Receptionist."""

    message = 'This operation requires the admin or receptionist role.'

    def has_permission(self, request, view):
        return user_role(request) in STAFF_ROLES


class IsClinicMember(permissions.BasePermission):
    """Any authenticated user carrying one of the clinic roles."""

    def has_permission(self, request, view):
        return user_role(request) in set(RoleChoices.values)


class IsAdminOrReadOnly(permissions.BasePermission):
    """
    Reads for every clinic role, writes for Admin only.

    Used for the psychologist directory.
    """

    def has_permission(self, request, view):
        role = user_role(request)
        if request.method in permissions.SAFE_METHODS:
            return role in set(RoleChoices.values)
        return role == RoleChoices.ADMIN


class IsStaffOrOwningPsychologist(permissions.BasePermission):
    """
    Object-level: staff see everything, a psychologist only objects whose
    ``psychologist_id`` is their own user id.
    """

    def has_permission(self, request, view):
        return user_role(request) in set(RoleChoices.values)

    def has_object_permission(self, request, view, obj):
        role = user_role(request)
        if role in STAFF_ROLES:
            return True
        return role == RoleChoices.PSYCHOLOGIST and str(obj.psychologist_id) == str(request.user.id)


class CanReviewBatch(permissions.BasePermission):
    """
    Approve/contest a payment batch.

    - Admin: any batch
    - Psychologist: only batches paid to them
    - Receptionist: no
    """

    message = 'Only the batch psychologist or an admin can review this payment.'

    def has_permission(self, request, view):
        return user_role(request) in {RoleChoices.ADMIN.value, RoleChoices.PSYCHOLOGIST.value}

    def has_object_permission(self, request, view, obj):
        if user_role(request) == RoleChoices.ADMIN:
            return True
        return str(obj.psychologist_id) == str(request.user.id)

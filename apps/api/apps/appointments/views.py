"""
Appointment views.

Appointments feed the payment workflow; scheduling itself happens in the
front office, so this API only records appointments and their status.
"""
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response

from apps.authz.models import RoleChoices
from apps.authz.permissions import IsClinicStaff, IsStaffOrOwningPsychologist
from apps.core.registry import get_registry

from .serializers import (
    AppointmentFilterSerializer,
    AppointmentSerializer,
    AppointmentStatusSummarySerializer,
    StatusSummaryQuerySerializer,
)


class AppointmentViewSet(viewsets.ViewSet):
    """
    - GET   /api/v1/appointments/ - List (psychologists see only their own)
    - POST  /api/v1/appointments/ - Record an appointment (staff)
    - GET   /api/v1/appointments/{id}/ - Detail
    - PATCH /api/v1/appointments/{id}/ - Update, e.g. mark completed (staff)
    - GET   /api/v1/appointments/status-summary/?period=today|week|month|year
    """
    permission_classes = [IsStaffOrOwningPsychologist]
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action in ('create', 'partial_update'):
            return [IsClinicStaff()]
        return super().get_permissions()

    def get_object(self, pk):
        appointment = get_registry().appointments.get(pk)
        if appointment is None:
            raise NotFound('Appointment not found')
        self.check_object_permissions(self.request, appointment)
        return appointment

    def _scoped_psychologist(self, request, requested):
        if request.user.role == RoleChoices.PSYCHOLOGIST:
            return request.user.id
        return requested

    def list(self, request):
        filters = AppointmentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data

        appointments = get_registry().appointments.list(
            psychologist_id=self._scoped_psychologist(request, params.get('psychologist_id')),
            status=params.get('status'),
            on_date=params.get('date'),
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
        )
        return Response(AppointmentSerializer(appointments, many=True).data)

    def create(self, request):
        serializer = AppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = get_registry().appointments.create(**serializer.validated_data)
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(AppointmentSerializer(self.get_object(pk)).data)

    def partial_update(self, request, pk=None):
        appointment = self.get_object(pk)
        serializer = AppointmentSerializer(appointment, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        updated = get_registry().appointments.update(appointment.id, **serializer.validated_data)
        if updated is None:
            raise NotFound('Appointment not found')
        return Response(AppointmentSerializer(updated).data)

    @action(detail=False, methods=['get'], url_path='status-summary')
    def status_summary(self, request):
        query = StatusSummaryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        summary = get_registry().appointments.status_summary(
            query.validated_data['period'],
            today=timezone.localdate(),
            psychologist_id=self._scoped_psychologist(request, query.validated_data.get('psychologist_id')),
        )
        return Response(AppointmentStatusSummarySerializer(summary).data)

"""Payment views."""
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.appointments.serializers import AppointmentSerializer
from apps.authz.models import RoleChoices
from apps.authz.permissions import (
    CanReviewBatch,
    IsClinicMember,
    IsClinicStaff,
    IsStaffOrOwningPsychologist,
)
from apps.core.observability import get_sanitized_logger
from apps.core.registry import get_registry

from .exceptions import BatchNotFound, PaymentLedgerError
from .serializers import (
    AppointmentSelectionSerializer,
    BatchFilterSerializer,
    BatchPreviewSerializer,
    ContestBatchSerializer,
    DashboardSerializer,
    EligibleAppointmentsQuerySerializer,
    PaymentBatchCreateSerializer,
    PaymentBatchSerializer,
    PaymentItemSerializer,
    PsychologistSummarySerializer,
)

logger = get_sanitized_logger(__name__)


class PaymentBatchViewSet(viewsets.ViewSet):
    """
    Payment batches and their review workflow.

    - GET  /api/v1/payments/batches/ - List (psychologists see only their own)
    - POST /api/v1/payments/batches/ - Create from eligible appointments (staff)
    - GET  /api/v1/payments/batches/{id}/ - Detail
    - GET  /api/v1/payments/batches/{id}/items/ - Items
    - POST /api/v1/payments/batches/{id}/approve/ - Approve (psychologist/admin)
    - POST /api/v1/payments/batches/{id}/contest/ - Contest with reason (psychologist/admin)
    - POST /api/v1/payments/batches/{id}/mark-paid/ - Settle (staff)
    """
    permission_classes = [IsStaffOrOwningPsychologist]
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action in ('create', 'mark_paid'):
            return [IsClinicStaff()]
        if self.action in ('approve', 'contest'):
            return [CanReviewBatch()]
        return super().get_permissions()

    def get_object(self, pk):
        batch = get_registry().ledger.get_batch(pk)
        if batch is None:
            raise NotFound('Payment batch not found')
        self.check_object_permissions(self.request, batch)
        return batch

    def list(self, request):
        filters = BatchFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        psychologist_id = filters.validated_data.get('psychologist_id')
        if request.user.role == RoleChoices.PSYCHOLOGIST:
            psychologist_id = request.user.id

        batches = get_registry().ledger.list_batches(
            status=filters.validated_data.get('status'),
            psychologist_id=psychologist_id,
        )
        return Response(PaymentBatchSerializer(batches, many=True).data)

    def create(self, request):
        registry = get_registry()
        serializer = PaymentBatchCreateSerializer(data=request.data, context={'registry': registry})
        serializer.is_valid(raise_exception=True)

        try:
            batch = registry.ledger.create_batch(
                serializer.validated_data['psychologist_id'],
                serializer.validated_data['appointments'],
                request.user,
            )
        except PaymentLedgerError as e:
            logger.warning(
                'Payment batch creation rejected',
                extra={
                    'psychologist_id': serializer.validated_data['psychologist_id'],
                    'error': str(e),
                }
            )
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(PaymentBatchSerializer(batch).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return Response(PaymentBatchSerializer(self.get_object(pk)).data)

    @action(detail=True, methods=['get'])
    def items(self, request, pk=None):
        batch = self.get_object(pk)
        items = get_registry().ledger.items_for_batch(batch.id)
        return Response(PaymentItemSerializer(items, many=True).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        self.get_object(pk)
        return self._transition(pk, lambda ledger: ledger.approve(pk))

    @action(detail=True, methods=['post'])
    def contest(self, request, pk=None):
        self.get_object(pk)
        serializer = ContestBatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reason = serializer.validated_data['reason']
        return self._transition(pk, lambda ledger: ledger.contest(pk, reason))

    @action(detail=True, methods=['post'], url_path='mark-paid')
    def mark_paid(self, request, pk=None):
        self.get_object(pk)
        return self._transition(pk, lambda ledger: ledger.mark_paid(pk))

    def _transition(self, pk, operation):
        """
        Run a ledger transition and map its outcome to a response.

        Returns:
        - 200: transition applied
        - 400: invalid transition (strict mode)
        - 404: batch not found
        """
        try:
            batch = operation(get_registry().ledger)
        except BatchNotFound:
            raise NotFound('Payment batch not found')
        except PaymentLedgerError as e:
            logger.warning(
                'Payment batch transition rejected',
                extra={'batch_id': pk, 'action': self.action, 'error': str(e)}
            )
            return Response(
                {'error': str(e), 'error_type': 'invalid_transition'},
                status=status.HTTP_400_BAD_REQUEST
            )

        if batch is None:
            raise NotFound('Payment batch not found')
        return Response(PaymentBatchSerializer(batch).data, status=status.HTTP_200_OK)


class EligibleAppointmentsView(APIView):
    """
    Completed appointments that can go into a new batch.

    GET /api/v1/payments/eligible-appointments/?psychologist_id=&date=&date_from=&date_to=
    """
    permission_classes = [IsClinicStaff]

    def get(self, request):
        query = EligibleAppointmentsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        registry = get_registry()
        appointments = registry.ledger.eligible_appointments(
            registry.appointments.list(),
            psychologist_id=params.get('psychologist_id'),
            on_date=params.get('date'),
            date_from=params.get('date_from'),
            date_to=params.get('date_to'),
        )
        return Response(AppointmentSerializer(appointments, many=True).data)


class BatchPreviewView(APIView):
    """
    Totals for a selection before creating the batch.

    POST /api/v1/payments/preview/
    {"psychologist_id": "psy-1", "appointment_ids": ["a1", "a2"]}
    """
    permission_classes = [IsClinicStaff]

    def post(self, request):
        registry = get_registry()
        serializer = AppointmentSelectionSerializer(data=request.data, context={'registry': registry})
        serializer.is_valid(raise_exception=True)

        preview = registry.ledger.preview_totals(
            serializer.validated_data['psychologist_id'],
            serializer.validated_data['appointments'],
        )
        return Response(BatchPreviewSerializer(preview).data)


class PaymentDashboardView(APIView):
    """
    GET /api/v1/payments/dashboard/

    Counts per status, total paid, per-psychologist and monthly breakdowns.
    """
    permission_classes = [IsClinicStaff]

    def get(self, request):
        snapshot = get_registry().ledger.refresh_dashboard()
        return Response(DashboardSerializer(snapshot).data)


class PsychologistSummaryView(APIView):
    """
    GET /api/v1/payments/summary/

    Psychologists get their own totals; staff pass ?psychologist_id=.
    """
    permission_classes = [IsClinicMember]

    def get(self, request):
        if request.user.role == RoleChoices.PSYCHOLOGIST:
            psychologist_id = request.user.id
        else:
            psychologist_id = request.query_params.get('psychologist_id')
            if not psychologist_id:
                return Response(
                    {'psychologist_id': ['This query parameter is required.']},
                    status=status.HTTP_400_BAD_REQUEST
                )

        summary = get_registry().ledger.psychologist_summary(psychologist_id)
        return Response(PsychologistSummarySerializer(summary).data)

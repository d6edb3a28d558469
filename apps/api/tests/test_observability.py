"""
Tests for observability layer.

Validates that metrics, logs, and events are emitted correctly
without logging patient data or contestation text.
"""
import json
import logging
from decimal import Decimal
from unittest.mock import MagicMock, Mock, patch

import pytest
from prometheus_client import CollectorRegistry, REGISTRY

from apps.core.observability.correlation import (
    RequestCorrelationMiddleware,
    bind_user_context,
    clear_request_context,
    get_request_id,
    get_user_id,
)
from apps.core.observability.events import (
    log_domain_event,
    log_transition_blocked,
    log_transition_ignored,
)
from apps.core.observability.logging import (
    CorrelationFilter,
    SanitizedJSONFormatter,
    sanitize_dict,
)
from apps.core.observability.metrics import MetricsRegistry, metrics


@pytest.fixture(autouse=True)
def clean_request_context():
    clear_request_context()
    yield
    clear_request_context()


class TestRequestCorrelation:
    """Test request correlation middleware."""

    def test_generates_request_id_if_missing(self):
        """Middleware generates request ID if not in headers."""
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(META={}, path='/api/v1/payments/batches/', method='GET')

        middleware.process_request(request)

        assert request.request_id
        assert get_request_id() == request.request_id

    def test_propagates_existing_request_id(self):
        """Middleware uses existing request ID from headers."""
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(
            META={'HTTP_X_REQUEST_ID': 'test-request-123'},
            path='/api/v1/payments/batches/',
            method='GET'
        )

        middleware.process_request(request)

        assert request.request_id == 'test-request-123'

    def test_new_request_clears_previous_user(self):
        """User context from an earlier request does not leak."""
        bind_user_context('psy-1', ['psychologist'])
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))

        middleware.process_request(Mock(META={}, path='/healthz', method='GET'))

        assert get_user_id() is None

    @pytest.mark.django_db
    def test_response_carries_request_id(self, psychologist_client):
        response = psychologist_client.get(
            '/api/v1/payments/batches/',
            HTTP_X_REQUEST_ID='req-42'
        )

        assert response['X-Request-ID'] == 'req-42'


class TestSanitization:
    """Test patient data sanitization."""

    def test_sanitize_dict_redacts_sensitive_fields(self):
        data = {
            'batch_id': 'batch-1',
            'patient_name': 'Maria Silva',
            'contestation_reason': 'Session was cancelled',
            'authorization_token': 'AUTH-123',
            'status': 'contested',
        }

        sanitized = sanitize_dict(data)

        assert sanitized['batch_id'] == 'batch-1'
        assert sanitized['status'] == 'contested'
        assert sanitized['patient_name'] == '[REDACTED]'
        assert sanitized['contestation_reason'] == '[REDACTED]'
        assert sanitized['authorization_token'] == '[REDACTED]'

    def test_sanitize_dict_handles_nested_objects(self):
        data = {
            'item': {'id': 'item-1', 'patient_name': 'Maria Silva'},
            'items': [{'patient_name': 'João'}],
        }

        sanitized = sanitize_dict(data)

        assert sanitized['item']['id'] == 'item-1'
        assert sanitized['item']['patient_name'] == '[REDACTED]'
        assert sanitized['items'][0]['patient_name'] == '[REDACTED]'

    def test_allowed_fields_not_redacted(self):
        data = {
            'batch_id': 'batch-1',
            'psychologist_id': 'psy-1',
            'from_status': 'pending',
            'to_status': 'approved',
            'total_net_value': '150.00',
        }

        assert sanitize_dict(data) == data

    def test_json_formatter_redacts_extra_fields(self):
        record = logging.LogRecord('apps.payments', logging.INFO, __file__, 1, 'Batch created', None, None)
        record.batch_id = 'batch-1'
        record.patient_name = 'Maria Silva'
        record.details = {'reason': 'Wrong value', 'item_count': 2}
        CorrelationFilter().filter(record)

        payload = json.loads(SanitizedJSONFormatter().format(record))

        assert payload['message'] == 'Batch created'
        assert payload['batch_id'] == 'batch-1'
        assert payload['patient_name'] == '[REDACTED]'
        assert payload['details'] == {'reason': '[REDACTED]', 'item_count': 2}
        assert payload['request_id'] == '-'


class TestMetricsEmission:
    """Test that metrics are emitted correctly."""

    def test_metrics_registry_has_all_metrics(self):
        for name in (
            'http_requests_total',
            'http_request_duration_seconds',
            'exceptions_total',
            'payment_batches_created_total',
            'payment_batch_transitions_total',
            'payment_batches_by_status',
            'payment_dashboard_refresh_duration_seconds',
            'payment_notifications_failed_total',
            'appointments_written_total',
        ):
            assert hasattr(metrics, name)

    def test_isolated_registry(self):
        registry = CollectorRegistry()
        isolated = MetricsRegistry(registry=registry)

        isolated.payment_batches_created_total.labels(result='success').inc()

        assert registry.get_sample_value('payment_batches_created_total', {'result': 'success'}) == 1

    def test_batch_creation_counted(self, ledger, make_appointment, admin_user):
        before = REGISTRY.get_sample_value('payment_batches_created_total', {'result': 'success'}) or 0

        ledger.create_batch('psy-1', [make_appointment()], admin_user)

        assert REGISTRY.get_sample_value('payment_batches_created_total', {'result': 'success'}) == before + 1

    def test_transitions_counted_by_outcome(self, ledger, make_appointment, admin_user):
        labels = {'from_status': 'pending', 'to_status': 'approved', 'result': 'success'}
        missing = {'from_status': 'unknown', 'to_status': 'approved', 'result': 'not_found'}
        before = REGISTRY.get_sample_value('payment_batch_transitions_total', labels) or 0
        before_missing = REGISTRY.get_sample_value('payment_batch_transitions_total', missing) or 0
        batch = ledger.create_batch('psy-1', [make_appointment()], admin_user)

        ledger.approve(batch.id)
        ledger.approve('missing')

        assert REGISTRY.get_sample_value('payment_batch_transitions_total', labels) == before + 1
        assert REGISTRY.get_sample_value('payment_batch_transitions_total', missing) == before_missing + 1

    def test_status_gauge_follows_dashboard(self, ledger, make_appointment, admin_user):
        batch = ledger.create_batch('psy-1', [make_appointment()], admin_user)
        ledger.contest(batch.id, 'Wrong value')

        assert REGISTRY.get_sample_value('payment_batches_by_status', {'status': 'contested'}) == 1
        assert REGISTRY.get_sample_value('payment_batches_by_status', {'status': 'pending'}) == 0


class TestDomainEvents:
    """Test domain event logging."""

    @patch('apps.core.observability.events.logger')
    def test_log_domain_event_structure(self, mock_logger):
        log_domain_event(
            'test_event',
            entity_type='PaymentBatch',
            entity_id='batch-123',
            result='success',
            custom_field='value'
        )

        mock_logger.info.assert_called_once()
        extra = mock_logger.info.call_args[1]['extra']
        assert extra['event'] == 'test_event'
        assert extra['entity_type'] == 'PaymentBatch'
        assert extra['entity_id'] == 'batch-123'
        assert extra['result'] == 'success'
        assert extra['custom_field'] == 'value'

    @patch('apps.core.observability.events.logger')
    def test_domain_event_redacts_patient_fields(self, mock_logger):
        log_domain_event('payment_item_created', patient_name='Maria Silva', item_count=1)

        extra = mock_logger.info.call_args[1]['extra']
        assert extra['patient_name'] == '[REDACTED]'
        assert extra['item_count'] == 1

    @patch('apps.core.observability.events.logger')
    def test_ignored_transition_is_warning(self, mock_logger):
        log_transition_ignored('missing', 'approved')

        mock_logger.warning.assert_called_once()
        extra = mock_logger.warning.call_args[1]['extra']
        assert extra['event'] == 'payment_batch_transition_ignored'
        assert extra['batch_id'] == 'missing'
        assert extra['result'] == 'ignored'

    @patch('apps.core.observability.events.logger')
    def test_blocked_transition_has_no_reason_text(self, mock_logger):
        batch = Mock(id='batch-1', psychologist_id='psy-1', status='paid')

        log_transition_blocked(batch, 'approved', reason='invalid_transition')

        extra = mock_logger.warning.call_args[1]['extra']
        assert extra['event'] == 'payment_batch_transition_blocked'
        assert extra['from_status'] == 'paid'
        assert extra['blocked_reason'] == 'invalid_transition'
        assert 'contestation_reason' not in extra

    @patch('apps.core.observability.events.logger')
    def test_batch_creation_event_has_totals_not_patients(self, mock_logger, ledger, make_appointment, admin_user):
        ledger.create_batch('psy-1', [make_appointment(value=Decimal('100.00'))], admin_user)

        created = [
            call for call in mock_logger.info.call_args_list
            if call[1]['extra'].get('event') == 'payment_batch_created'
        ]
        assert len(created) == 1
        extra = created[0][1]['extra']
        assert extra['total_net_value'] == '50.00'
        assert extra['psychologist_id'] == 'psy-1'
        assert 'patient_name' not in extra

    @patch('apps.core.observability.events.logger')
    def test_consistency_checkpoint_passes(self, mock_logger, ledger, make_appointment, admin_user):
        ledger.create_batch('psy-1', [make_appointment(), make_appointment()], admin_user)

        checkpoints = [
            call for call in mock_logger.info.call_args_list
            if call[1]['extra'].get('event') == 'consistency_checkpoint'
        ]
        assert len(checkpoints) == 1
        assert checkpoints[0][1]['extra']['status'] == 'passed'
        mock_logger.error.assert_not_called()


class TestTracingIntegration:
    """Test tracing span creation."""

    def test_trace_span_without_sdk(self):
        """The OpenTelemetry API alone hands out non-recording spans."""
        from apps.core.observability.tracing import add_span_attribute, trace_span

        with trace_span('test_operation', attributes={'batch_id': '123'}):
            add_span_attribute('item_count', 2)

    @patch('apps.core.observability.tracing.tracer')
    def test_trace_span_sets_attributes(self, mock_tracer):
        from apps.core.observability.tracing import trace_span

        mock_span = MagicMock()
        mock_tracer.start_as_current_span.return_value.__enter__.return_value = mock_span

        with trace_span('payment_batch_create', attributes={'psychologist_id': 'psy-1'}):
            pass

        mock_tracer.start_as_current_span.assert_called_once()
        mock_span.set_attribute.assert_called_with('psychologist_id', 'psy-1')

    @patch('apps.core.observability.tracing.tracer')
    def test_trace_span_marks_errors(self, mock_tracer):
        from apps.core.observability.tracing import trace_span

        mock_span = MagicMock()
        mock_tracer.start_as_current_span.return_value.__enter__.return_value = mock_span

        with pytest.raises(ValueError):
            with trace_span('failing_operation'):
                raise ValueError('boom')

        mock_span.set_attribute.assert_any_call('error', True)
        mock_span.set_status.assert_called_once()

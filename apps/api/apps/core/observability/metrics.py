"""
Metrics instrumentation (Prometheus).
"""
from functools import wraps
import time

from prometheus_client import Counter, Gauge, Histogram


class MetricsRegistry:
    """
    Central metrics registry for the clinic payments service.

    Provides typed access to all application metrics.
    """

    def __init__(self, registry=None):
        """
        Initialize metrics registry.

        Args:
            registry: prometheus CollectorRegistry (default: global registry)
        """
        self._registry = registry
        self._setup_metrics()

    def _kwargs(self):
        return {'registry': self._registry} if self._registry is not None else {}

    def _create_counter(self, name, description, labels=None):
        """Create a counter metric."""
        return Counter(name, description, labels or [], **self._kwargs())

    def _create_histogram(self, name, description, labels=None, buckets=None):
        """Create a histogram metric."""
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets, **self._kwargs())
        return Histogram(name, description, labels or [], **self._kwargs())

    def _create_gauge(self, name, description, labels=None):
        """Create a gauge metric."""
        return Gauge(name, description, labels or [], **self._kwargs())

    def _setup_metrics(self):
        """Setup all application metrics."""

        # ===================================================================
        # HTTP Metrics
        # ===================================================================
        self.http_requests_total = self._create_counter(
            'http_requests_total',
            'Total HTTP requests',
            ['path', 'method', 'status']
        )

        self.http_request_duration_seconds = self._create_histogram(
            'http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['path', 'method'],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
        )

        self.exceptions_total = self._create_counter(
            'exceptions_total',
            'Total exceptions',
            ['exception_type', 'location']
        )

        # ===================================================================
        # Payment Metrics
        # ===================================================================
        self.payment_batches_created_total = self._create_counter(
            'payment_batches_created_total',
            'Payment batches created',
            ['result']
        )

        self.payment_batch_transitions_total = self._create_counter(
            'payment_batch_transitions_total',
            'Payment batch status transitions',
            ['from_status', 'to_status', 'result']
        )

        self.payment_batches_by_status = self._create_gauge(
            'payment_batches_by_status',
            'Payment batches currently in each status',
            ['status']
        )

        self.payment_dashboard_refresh_duration_seconds = self._create_histogram(
            'payment_dashboard_refresh_duration_seconds',
            'Duration of dashboard recomputation',
            buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1]
        )

        self.payment_notifications_failed_total = self._create_counter(
            'payment_notifications_failed_total',
            'Notification sink failures (mutation kept)',
            ['sink']
        )

        # ===================================================================
        # Appointment Metrics
        # ===================================================================
        self.appointments_written_total = self._create_counter(
            'appointments_written_total',
            'Appointment records created or replaced',
            ['action']
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.payment_dashboard_refresh_duration_seconds)
            def compute_dashboard(batches):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    duration = time.time() - start_time
                    histogram_metric.observe(duration)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()

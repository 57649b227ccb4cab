"""
Metrics instrumentation wrapper around prometheus_client.
"""
import logging
import time
from functools import wraps

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


class MetricsRegistry:
    """
    Central metrics registry for the scheduling service.

    Provides typed access to all application metrics.
    """

    def __init__(self):
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        return Counter(name, description, labels or [])

    def _create_histogram(self, name, description, labels=None, buckets=None):
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets)
        return Histogram(name, description, labels or [])

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
        # Appointment Metrics
        # ===================================================================
        self.appointments_created_total = self._create_counter(
            'appointments_created_total',
            'Appointment creation attempts',
            ['result']  # success, conflict, not_found
        )

        self.appointment_transitions_total = self._create_counter(
            'appointment_transitions_total',
            'Appointment status transitions',
            ['from_status', 'to_status', 'result']
        )

        self.appointment_audit_events_total = self._create_counter(
            'appointment_audit_events_total',
            'Appointment audit rows written',
            ['action']
        )

        self.vitals_recorded_total = self._create_counter(
            'vitals_recorded_total',
            'Vitals records saved',
            ['critical']  # true, false
        )

        # ===================================================================
        # Scheduling Metrics
        # ===================================================================
        self.availability_queries_total = self._create_counter(
            'availability_queries_total',
            'Slot availability computations',
            ['source']  # override_unavailable, custom_hours, schedule, none
        )

        self.availability_duration_seconds = self._create_histogram(
            'availability_duration_seconds',
            'Duration of a single-day slot computation',
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5]
        )

        self.schedule_override_conflicts_total = self._create_counter(
            'schedule_override_conflicts_total',
            'Rejected duplicate overrides for the same doctor and date'
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.availability_duration_seconds)
            def get_available_slots(doctor_id, date):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    histogram_metric.observe(time.time() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()

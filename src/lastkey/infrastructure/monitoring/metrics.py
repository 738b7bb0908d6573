"""Prometheus metrics for the release engine.

Counters only; every state transition, reconciler tick and swallowed
collaborator failure is counted. Exposed by the API at GET /metrics.

Labels:
- release_transitions_total{to_status}
- reconciler_ticks_total{job}
- reconciler_tick_failures_total{job}
- collaborator_failures_total{collaborator}

All metrics also carry service and environment labels.
"""

import os
import threading

from prometheus_client import (
    CollectorRegistry,
    Counter,
    generate_latest,
)

# Content type for Prometheus metrics endpoint
METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_collector_lock = threading.Lock()


class MetricsCollector:
    """Collects release engine metrics in its own registry.

    Attributes:
        release_transitions_total: Transitions by target status.
        reconciler_ticks_total: Completed reconciler passes by job.
        reconciler_tick_failures_total: Passes that raised, by job.
        collaborator_failures_total: Swallowed notifier/audit failures.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize the collector.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")
        self._service_name = os.environ.get("SERVICE_NAME", "lastkey")

        self.release_transitions_total = Counter(
            name="release_transitions_total",
            documentation="Release state transitions by target status",
            labelnames=["service", "environment", "to_status"],
            registry=self._registry,
        )

        self.reconciler_ticks_total = Counter(
            name="reconciler_ticks_total",
            documentation="Completed reconciliation passes",
            labelnames=["service", "environment", "job"],
            registry=self._registry,
        )

        self.reconciler_tick_failures_total = Counter(
            name="reconciler_tick_failures_total",
            documentation="Reconciliation passes that failed partway",
            labelnames=["service", "environment", "job"],
            registry=self._registry,
        )

        self.collaborator_failures_total = Counter(
            name="collaborator_failures_total",
            documentation="Notifier or audit sink failures swallowed by the engine",
            labelnames=["service", "environment", "collaborator"],
            registry=self._registry,
        )

    def _labels(self) -> dict[str, str]:
        return {"service": self._service_name, "environment": self._environment}

    def increment_transitions(self, to_status: str) -> None:
        """Count one release transition into ``to_status``."""
        self.release_transitions_total.labels(**self._labels(), to_status=to_status).inc()

    def increment_reconciler_ticks(self, job: str) -> None:
        self.reconciler_ticks_total.labels(**self._labels(), job=job).inc()

    def increment_reconciler_failures(self, job: str) -> None:
        self.reconciler_tick_failures_total.labels(**self._labels(), job=job).inc()

    def increment_collaborator_failures(self, collaborator: str) -> None:
        """Count one swallowed failure of ``notifier`` or ``audit_sink``."""
        self.collaborator_failures_total.labels(
            **self._labels(), collaborator=collaborator
        ).inc()

    def get_registry(self) -> CollectorRegistry:
        return self._registry


# Singleton instance
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get the singleton MetricsCollector instance (thread-safe)."""
    global _metrics_collector
    if _metrics_collector is None:
        with _collector_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def generate_metrics() -> bytes:
    """Generate Prometheus exposition output."""
    return generate_latest(get_metrics_collector().get_registry())


def reset_metrics_collector() -> None:
    """Reset the singleton collector (for testing only)."""
    global _metrics_collector
    with _collector_lock:
        _metrics_collector = None

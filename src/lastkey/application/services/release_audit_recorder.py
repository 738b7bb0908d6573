"""Audit recording that never interrupts a transition."""

from __future__ import annotations

from lastkey.application.ports.audit_sink import AuditSinkProtocol
from lastkey.domain.events.release import ReleaseAuditEvent
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service


class ReleaseAuditRecorder:
    """Hands audit events to the sink, logging and counting failures."""

    def __init__(
        self,
        audit_sink: AuditSinkProtocol,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._sink = audit_sink
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("release_audit_recorder")

    async def record(self, event: ReleaseAuditEvent) -> bool:
        """Record one event.

        Returns:
            True if the sink accepted the event, False if it failed.
        """
        try:
            await self._sink.record(event)
        except Exception as e:
            self._metrics.increment_collaborator_failures("audit_sink")
            self._log.warning(
                "audit_record_failed",
                event_type=event.event_type,
                release_id=str(event.release_id) if event.release_id else None,
                vault_id=str(event.vault_id),
                error=str(e),
            )
            return False
        return True

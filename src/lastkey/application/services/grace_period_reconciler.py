"""Grace-period reconciler.

Promotes pending releases whose grace period has ended to in_progress, then
tells witnesses that their approval is required and beneficiaries that the
release is awaiting approval. One audit event per promoted release.

Safe to run concurrently with itself and the other reconcilers: each
promotion is a version-checked write, and a release that another writer
already moved no longer satisfies the guard, so it is skipped.
"""

from __future__ import annotations

from datetime import datetime

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.application.services.release_context_assembler import (
    ReleaseContextAssembler,
)
from lastkey.application.services.release_notification_service import (
    ReleaseNotificationService,
)
from lastkey.application.services.release_updater import (
    ReleaseTransition,
    ReleaseUpdater,
)
from lastkey.domain.events.release import (
    RELEASE_GRACE_PERIOD_ENDED_EVENT_TYPE,
    ReleaseAuditEvent,
)
from lastkey.domain.exceptions import LastKeyError
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.domain.services import release_state_machine
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service


def _promote_if_due(now: datetime) -> ReleaseTransition:
    def transition(release: Release) -> Release | None:
        if release.status != ReleaseStatus.PENDING or now < release.grace_period_end:
            return None
        return release_state_machine.end_grace_period(release, now)

    return transition


class GracePeriodReconciler:
    """Moves pending releases to in_progress once their grace period ends."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        updater: ReleaseUpdater,
        assembler: ReleaseContextAssembler,
        notifications: ReleaseNotificationService,
        audit: ReleaseAuditRecorder,
        time_authority: TimeAuthorityProtocol,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._releases = releases
        self._updater = updater
        self._assembler = assembler
        self._notifications = notifications
        self._audit = audit
        self._time = time_authority
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("grace_period_reconciler")

    async def run_once(self) -> list[Release]:
        """Run one pass.

        Returns:
            Releases this pass moved to in_progress.
        """
        now = self._time.now()
        due = await self._releases.list_by_status(ReleaseStatus.PENDING, due_before=now)
        promoted: list[Release] = []

        for candidate in due:
            try:
                release, changed = await self._updater.apply(
                    candidate.id, _promote_if_due(now)
                )
            except LastKeyError as e:
                # Left for the next pass
                self._log.warning(
                    "grace_period_promotion_failed",
                    release_id=str(candidate.id),
                    error=str(e),
                )
                continue
            if not changed:
                continue

            promoted.append(release)
            self._metrics.increment_transitions(release.status.value)
            await self._after_promotion(release, now)

        self._log.info(
            "grace_period_reconciled",
            candidates=len(due),
            promoted=len(promoted),
        )
        return promoted

    async def _after_promotion(self, release: Release, now: datetime) -> None:
        notified = 0
        try:
            context = await self._assembler.assemble(release)
        except LastKeyError as e:
            self._log.warning(
                "release_context_unavailable",
                release_id=str(release.id),
                error=str(e),
            )
        else:
            notified = await self._notifications.notify_grace_period_ended(context)

        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_GRACE_PERIOD_ENDED_EVENT_TYPE,
                vault_id=release.vault_id,
                release_id=release.id,
                occurred_at=now,
                details={
                    "status": release.status.value,
                    "approvals_needed": release.approvals_needed,
                    "notified": notified,
                },
            )
        )
        self._log.info(
            "release_awaiting_approval",
            release_id=str(release.id),
            vault_id=str(release.vault_id),
            notified=notified,
        )

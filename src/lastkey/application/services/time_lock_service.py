"""Time-lock announcement and finalization.

Both the witness confirmation path and the time-lock reconciler announce a
started time-lock, and both the reconciler and the manual finalize operation
release a vault. The shared steps live here.
"""

from __future__ import annotations

from uuid import UUID

from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.application.services.release_context_assembler import (
    ReleaseContextAssembler,
)
from lastkey.application.services.release_notification_service import (
    ReleaseNotificationService,
)
from lastkey.application.services.release_updater import ReleaseUpdater
from lastkey.domain.events.release import (
    RELEASE_RELEASED_EVENT_TYPE,
    RELEASE_SYSTEM_ACTOR_ID,
    ReleaseAuditEvent,
)
from lastkey.domain.exceptions import LastKeyError
from lastkey.domain.models.release import Release
from lastkey.domain.services import release_state_machine
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service


def _claim_announcement(release: Release) -> Release | None:
    if not release_state_machine.needs_time_lock_announcement(release):
        return None
    return release_state_machine.mark_time_lock_notified(release)


class TimeLockService:
    """Announces started time-locks once and finalizes elapsed ones."""

    def __init__(
        self,
        updater: ReleaseUpdater,
        assembler: ReleaseContextAssembler,
        notifications: ReleaseNotificationService,
        audit: ReleaseAuditRecorder,
        time_authority: TimeAuthorityProtocol,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._updater = updater
        self._assembler = assembler
        self._notifications = notifications
        self._audit = audit
        self._time = time_authority
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("time_lock_service")

    async def announce(self, release_id: UUID) -> Release | None:
        """Send the one-time "time-lock started" message.

        The notified_time_lock flag is claimed with a version-checked write
        before sending, so concurrent callers send at most once between them.

        Returns:
            The release with the flag set, or None if someone else already
            announced it or the release is no longer approved.
        """
        try:
            release, claimed = await self._updater.apply(release_id, _claim_announcement)
        except LastKeyError as e:
            self._log.warning(
                "time_lock_announcement_failed",
                release_id=str(release_id),
                error=str(e),
            )
            return None
        if not claimed:
            return None

        try:
            context = await self._assembler.assemble(release)
        except LastKeyError as e:
            self._log.warning(
                "release_context_unavailable",
                release_id=str(release.id),
                error=str(e),
            )
            return release

        notified = await self._notifications.notify_time_lock_started(context)
        self._log.info(
            "time_lock_announced",
            release_id=str(release.id),
            countdown_end=release.countdown_end.isoformat() if release.countdown_end else None,
            notified=notified,
        )
        return release

    async def finalize(
        self,
        release_id: UUID,
        *,
        actor_id: str = RELEASE_SYSTEM_ACTOR_ID,
    ) -> Release:
        """Move an approved release whose countdown ended to released.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseNotApprovedError: If the release is not approved.
            TimeLockActiveError: If the countdown has not ended.
        """
        now = self._time.now()
        release, _ = await self._updater.apply(
            release_id, lambda current: release_state_machine.finalize(current, now)
        )
        self._metrics.increment_transitions(release.status.value)

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
            notified = await self._notifications.notify_released(context)

        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_RELEASED_EVENT_TYPE,
                vault_id=release.vault_id,
                release_id=release.id,
                actor_id=actor_id,
                occurred_at=now,
                details={
                    "completed_at": now.isoformat(),
                    "approvals_received": release.approvals_received,
                    "approvals_needed": release.approvals_needed,
                },
            )
        )
        self._log.info(
            "release_finalized",
            release_id=str(release.id),
            vault_id=str(release.vault_id),
            actor_id=actor_id,
            notified=notified,
        )
        return release

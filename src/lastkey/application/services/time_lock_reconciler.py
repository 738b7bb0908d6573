"""Time-lock reconciler.

Each pass over approved releases does three things:

- Announcement: approved releases whose one-time "time-lock started"
  message was never sent (notified_time_lock unset) get it now.
- Reminder: releases whose countdown ends within the reminder threshold get
  a reminder and an audit event. Reminders may repeat on later passes.
- Finalization: releases whose countdown has ended move to released and
  participants are told the vault is accessible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.application.services.release_context_assembler import (
    ReleaseContextAssembler,
)
from lastkey.application.services.release_notification_service import (
    ReleaseNotificationService,
)
from lastkey.application.services.time_lock_service import TimeLockService
from lastkey.domain.events.release import (
    RELEASE_TIME_LOCK_REMINDER_EVENT_TYPE,
    ReleaseAuditEvent,
)
from lastkey.domain.exceptions import LastKeyError
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.services import release_state_machine
from lastkey.infrastructure.observability.logging import get_logger_for_service


@dataclass
class TimeLockPassResult:
    """What one pass did."""

    announced: list[UUID] = field(default_factory=list)
    reminded: list[UUID] = field(default_factory=list)
    released: list[Release] = field(default_factory=list)


class TimeLockReconciler:
    """Announces, reminds and finalizes approved releases."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        time_lock: TimeLockService,
        assembler: ReleaseContextAssembler,
        notifications: ReleaseNotificationService,
        audit: ReleaseAuditRecorder,
        time_authority: TimeAuthorityProtocol,
        time_unit: TimeUnit,
        reminder_threshold: float,
    ) -> None:
        self._releases = releases
        self._time_lock = time_lock
        self._assembler = assembler
        self._notifications = notifications
        self._audit = audit
        self._time = time_authority
        self._time_unit = time_unit
        self._reminder_threshold = reminder_threshold
        self._log = get_logger_for_service("time_lock_reconciler")

    async def run_once(self) -> TimeLockPassResult:
        now = self._time.now()
        result = TimeLockPassResult()
        approved = await self._releases.list_by_status(ReleaseStatus.APPROVED)

        for release in approved:
            if release_state_machine.needs_time_lock_announcement(release):
                announced = await self._time_lock.announce(release.id)
                if announced is not None:
                    result.announced.append(release.id)

            if release.countdown_end is not None and release.countdown_end <= now:
                finalized = await self._finalize(release)
                if finalized is not None:
                    result.released.append(finalized)
            elif release_state_machine.reminder_due(
                release, now, self._time_unit, self._reminder_threshold
            ):
                if await self._remind(release, now):
                    result.reminded.append(release.id)

        self._log.info(
            "time_lock_reconciled",
            candidates=len(approved),
            announced=len(result.announced),
            reminded=len(result.reminded),
            released=len(result.released),
        )
        return result

    async def _finalize(self, release: Release) -> Release | None:
        try:
            return await self._time_lock.finalize(release.id)
        except LastKeyError as e:
            # Revoked or finalized by someone else since the scan
            self._log.info(
                "time_lock_finalization_skipped",
                release_id=str(release.id),
                reason=str(e),
            )
            return None

    async def _remind(self, release: Release, now: datetime) -> bool:
        remaining = release.time_lock_remaining(now)
        if remaining is None:
            return False
        try:
            context = await self._assembler.assemble(release)
        except LastKeyError as e:
            self._log.warning(
                "release_context_unavailable",
                release_id=str(release.id),
                error=str(e),
            )
            return False

        notified = await self._notifications.notify_time_lock_reminder(context, remaining)
        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_TIME_LOCK_REMINDER_EVENT_TYPE,
                vault_id=release.vault_id,
                release_id=release.id,
                occurred_at=now,
                details={
                    "countdown_end": release.countdown_end.isoformat()
                    if release.countdown_end
                    else None,
                    "remaining_units": round(self._time_unit.to_units(remaining), 4),
                    "notified": notified,
                },
            )
        )
        return True

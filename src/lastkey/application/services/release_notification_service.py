"""Best-effort participant notifications for release transitions.

Messages are composed here and handed to the notifier one recipient at a
time. A failed send is logged, counted and skipped; it never reaches the
transition that caused it.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from lastkey.application.ports.notifier import NotifierProtocol
from lastkey.domain.models.release_context import ReleaseContext
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import Participant
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service


class ReleaseNotificationService:
    """Composes and fans out release notifications.

    Attributes:
        _notifier: Outbound delivery collaborator.
        _time_unit: Unit used to describe remaining time in messages.
    """

    def __init__(
        self,
        notifier: NotifierProtocol,
        time_unit: TimeUnit,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._notifier = notifier
        self._time_unit = time_unit
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("release_notification_service")

    async def notify_grace_period_ended(self, context: ReleaseContext) -> int:
        """Witnesses are asked to act; beneficiaries are told to wait.

        A beneficiary who is also a witness only gets the witness message.
        """
        title = context.vault.title
        witness_ids = {w.participant_id for w in context.witnesses}
        waiting = tuple(
            b for b in context.beneficiaries if b.participant_id not in witness_ids
        )
        sent = await self._send_all(
            context,
            context.witnesses,
            subject=f"Approval required: {title}",
            body=(
                f'The grace period for vault "{title}" has ended. As a witness, '
                f"please approve or reject the release "
                f"({context.release.approvals_needed} approval(s) required)."
            ),
        )
        sent += await self._send_all(
            context,
            waiting,
            subject=f"Release awaiting approval: {title}",
            body=(
                f'The release of vault "{title}" is now awaiting witness approval. '
                "You will be notified when the vault becomes accessible."
            ),
        )
        return sent

    async def notify_time_lock_started(self, context: ReleaseContext) -> int:
        release = context.release
        title = context.vault.title
        return await self._send_all(
            context,
            context.recipients,
            subject=f"Vault approved, time-lock started: {title}",
            body=(
                f'Vault "{title}" received all required approvals '
                f"({release.approvals_received}/{release.approvals_needed}). "
                f"The time-lock ends at {_format(release.countdown_end)}."
            ),
        )

    async def notify_time_lock_reminder(
        self, context: ReleaseContext, remaining: timedelta
    ) -> int:
        title = context.vault.title
        remaining_units = round(self._time_unit.to_units(remaining), 2)
        return await self._send_all(
            context,
            context.recipients,
            subject=f"Reminder: vault {title} unlocks soon",
            body=(
                f'The time-lock on vault "{title}" ends in about '
                f"{self._time_unit.describe(remaining_units)} "
                f"({_format(context.release.countdown_end)})."
            ),
        )

    async def notify_rejected(self, context: ReleaseContext, comment: str | None) -> int:
        title = context.vault.title
        return await self._send_all(
            context,
            context.recipients,
            subject=f"Vault release rejected: {title}",
            body=(
                f'The release of vault "{title}" has been rejected by a witness. '
                f"Comment: {comment or 'No comment provided'}"
            ),
        )

    async def notify_revoked(self, context: ReleaseContext, reason: str | None) -> int:
        title = context.vault.title
        return await self._send_all(
            context,
            context.recipients,
            subject=f"Vault release aborted: {title}",
            body=(
                f'The release of vault "{title}" has been aborted by the owner. '
                f"Reason: {reason or 'No reason provided'}"
            ),
        )

    async def notify_released(self, context: ReleaseContext) -> int:
        title = context.vault.title
        return await self._send_all(
            context,
            context.recipients,
            subject=f"Vault now accessible: {title}",
            body=(
                f'The time-lock on vault "{title}" has ended. '
                "The vault contents are now accessible to its beneficiaries."
            ),
        )

    async def _send_all(
        self,
        context: ReleaseContext,
        recipients: tuple[Participant, ...],
        *,
        subject: str,
        body: str,
    ) -> int:
        """Send to each recipient; returns how many sends succeeded."""
        sent = 0
        for recipient in recipients:
            try:
                await self._notifier.send(recipient, subject, body)
            except Exception as e:
                self._metrics.increment_collaborator_failures("notifier")
                self._log.warning(
                    "notification_failed",
                    release_id=str(context.release.id),
                    vault_id=str(context.vault.id),
                    participant_id=str(recipient.participant_id),
                    subject=subject,
                    error=str(e),
                )
                continue
            sent += 1
        self._log.debug(
            "notifications_sent",
            release_id=str(context.release.id),
            subject=subject,
            sent=sent,
            recipients=len(recipients),
        )
        return sent


def _format(moment: datetime | None) -> str:
    return moment.isoformat() if moment is not None else "unknown"

"""Witness quorum confirmation.

confirm() checks, in order, each with its own error:

1. the decision is "approved" or "rejected"      InvalidDecisionError
2. the release exists                            ReleaseNotFoundError
3. the release is in_progress                    GracePeriodActiveError (pending)
                                                 ReleaseInvalidStateError (other)
4. the actor is a witness of the release's vault WitnessRoleRequiredError
5. the actor has not confirmed this release yet  DuplicateConfirmationError

The confirmation and the updated release are then written as one unit. A
rejection vetoes the release regardless of earlier approvals. The approval
that brings the count to the quorum moves the release to approved and starts
the time-lock.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from uuid6 import uuid7

from lastkey.application.ports.confirmation_repository import (
    ConfirmationRepositoryProtocol,
)
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
from lastkey.domain.errors.concurrent_modification import ConcurrentModificationError
from lastkey.domain.errors.confirmation import (
    CommentTooLongError,
    DuplicateConfirmationError,
    WitnessRoleRequiredError,
)
from lastkey.domain.errors.release import ReleaseNotFoundError
from lastkey.domain.events.release import (
    RELEASE_APPROVED_EVENT_TYPE,
    RELEASE_CONFIRMATION_RECORDED_EVENT_TYPE,
    RELEASE_REJECTED_EVENT_TYPE,
    ReleaseAuditEvent,
)
from lastkey.domain.models.confirmation import (
    MAX_COMMENT_LENGTH,
    Confirmation,
    ConfirmationDecision,
)
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.domain.models.release_context import ReleaseContext
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import ParticipantRole
from lastkey.domain.services import release_state_machine
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service


@dataclass(frozen=True)
class ConfirmationResult:
    """Outcome of a successful confirm() call."""

    confirmation: Confirmation
    release: Release

    @property
    def quorum_reached(self) -> bool:
        return self.release.status in (ReleaseStatus.APPROVED, ReleaseStatus.RELEASED)


class WitnessConfirmationService:
    """Handles witness approve/reject actions during the approval phase."""

    def __init__(
        self,
        releases: ReleaseRepositoryProtocol,
        confirmations: ConfirmationRepositoryProtocol,
        assembler: ReleaseContextAssembler,
        notifications: ReleaseNotificationService,
        audit: ReleaseAuditRecorder,
        time_lock: TimeLockService,
        time_authority: TimeAuthorityProtocol,
        time_unit: TimeUnit,
        max_retries: int,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._releases = releases
        self._confirmations = confirmations
        self._assembler = assembler
        self._notifications = notifications
        self._audit = audit
        self._time_lock = time_lock
        self._time = time_authority
        self._time_unit = time_unit
        self._max_retries = max_retries
        self._metrics = metrics or get_metrics_collector()
        self._log = get_logger_for_service("witness_confirmation_service")

    async def confirm(
        self,
        release_id: UUID,
        witness_id: UUID,
        decision: str | ConfirmationDecision,
        comment: str | None = None,
    ) -> ConfirmationResult:
        """Record one witness decision.

        Args:
            release_id: Release being confirmed.
            witness_id: Acting participant.
            decision: "approved" or "rejected".
            comment: Optional free text, included in rejection notices.

        Returns:
            The stored confirmation and the release after the decision.

        Raises:
            InvalidDecisionError, CommentTooLongError, ReleaseNotFoundError, GracePeriodActiveError,
            ReleaseInvalidStateError, WitnessRoleRequiredError,
            DuplicateConfirmationError, ConcurrentModificationError.
        """
        parsed = ConfirmationDecision.parse(decision)
        if comment is not None and len(comment) > MAX_COMMENT_LENGTH:
            raise CommentTooLongError(len(comment), MAX_COMMENT_LENGTH)
        log = self._log.bind(
            release_id=str(release_id),
            witness_id=str(witness_id),
            decision=parsed.value,
        )
        confirmation_id = uuid7()

        # Losing to a newer version re-runs every check; only refused writes
        # against an unchanged release count towards max_retries
        stalled = 0
        while True:
            release = await self._releases.get(release_id)
            if release is None:
                raise ReleaseNotFoundError(release_id)
            release_state_machine.ensure_awaiting_approval(release)

            context = await self._assembler.assemble(release)
            if not context.vault.has_role(witness_id, ParticipantRole.WITNESS):
                log.warning("confirmation_forbidden")
                raise WitnessRoleRequiredError(witness_id, release.vault_id)

            existing = await self._confirmations.get(release_id, witness_id)
            if existing is not None:
                raise DuplicateConfirmationError(
                    release_id=release_id,
                    participant_id=witness_id,
                    existing_confirmation_id=existing.id,
                    confirmed_at=existing.timestamp,
                )

            now = self._time.now()
            updated = release_state_machine.apply_decision(
                release, parsed, context.rule_set, self._time_unit, now
            )
            confirmation = Confirmation(
                id=confirmation_id,
                release_id=release_id,
                participant_id=witness_id,
                status=parsed,
                timestamp=now,
                comment=comment,
            )
            try:
                stored = await self._confirmations.record_confirmation(
                    confirmation, updated, release.version
                )
            except ConcurrentModificationError as e:
                stalled = 0 if e.superseded else stalled + 1
                if stalled >= self._max_retries:
                    log.warning("confirmation_retries_exhausted", attempts=stalled)
                    raise
                log.debug(
                    "confirmation_conflict",
                    expected_version=e.expected_version,
                    actual_version=e.actual_version,
                )
                continue
            break

        log.info(
            "confirmation_recorded",
            approvals_received=stored.approvals_received,
            approvals_needed=stored.approvals_needed,
            status=stored.status.value,
        )
        stored = await self._after_confirmation(
            context.with_release(stored), confirmation, previous=release
        )
        return ConfirmationResult(confirmation=confirmation, release=stored)

    async def _after_confirmation(
        self,
        context: ReleaseContext,
        confirmation: Confirmation,
        previous: Release,
    ) -> Release:
        release = context.release
        now = confirmation.timestamp
        actor_id = str(confirmation.participant_id)

        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_CONFIRMATION_RECORDED_EVENT_TYPE,
                vault_id=release.vault_id,
                release_id=release.id,
                actor_id=actor_id,
                occurred_at=now,
                details={
                    "decision": confirmation.status.value,
                    "approvals_received": release.approvals_received,
                    "approvals_needed": release.approvals_needed,
                    "status": release.status.value,
                },
            )
        )
        if release.status == previous.status:
            return release

        self._metrics.increment_transitions(release.status.value)

        if release.status == ReleaseStatus.REJECTED:
            await self._notifications.notify_rejected(context, confirmation.comment)
            await self._audit.record(
                ReleaseAuditEvent(
                    event_type=RELEASE_REJECTED_EVENT_TYPE,
                    vault_id=release.vault_id,
                    release_id=release.id,
                    actor_id=actor_id,
                    occurred_at=now,
                    details={
                        "comment": confirmation.comment,
                        "approvals_received": release.approvals_received,
                    },
                )
            )
            return release

        await self._audit.record(
            ReleaseAuditEvent(
                event_type=RELEASE_APPROVED_EVENT_TYPE,
                vault_id=release.vault_id,
                release_id=release.id,
                actor_id=actor_id,
                occurred_at=now,
                details={
                    "countdown_end": release.countdown_end.isoformat()
                    if release.countdown_end
                    else None,
                    "approvals_received": release.approvals_received,
                },
            )
        )
        announced = await self._time_lock.announce(release.id)
        if announced is not None:
            return announced
        return await self._releases.get(release.id) or release

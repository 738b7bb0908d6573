"""Audit event payloads for the release lifecycle.

Every state transition, witness decision and reminder produces one
ReleaseAuditEvent handed to the audit sink. The sink decides how the event is
persisted; this module only fixes what the event says.

Event types:
- release.triggered: Release opened by the inactivity monitor or a manual trigger
- release.grace_period_ended: pending -> in_progress
- release.confirmation_recorded: A witness approved or rejected
- release.approved: Quorum reached, time-lock started
- release.rejected: Witness veto
- release.revoked: Owner revocation
- release.time_lock_reminder: Countdown close to its end
- release.released: Vault accessible to beneficiaries
- vault.release_reset: Inactivity marker cleared for a new episode
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

RELEASE_TRIGGERED_EVENT_TYPE: str = "release.triggered"
RELEASE_GRACE_PERIOD_ENDED_EVENT_TYPE: str = "release.grace_period_ended"
RELEASE_CONFIRMATION_RECORDED_EVENT_TYPE: str = "release.confirmation_recorded"
RELEASE_APPROVED_EVENT_TYPE: str = "release.approved"
RELEASE_REJECTED_EVENT_TYPE: str = "release.rejected"
RELEASE_REVOKED_EVENT_TYPE: str = "release.revoked"
RELEASE_TIME_LOCK_REMINDER_EVENT_TYPE: str = "release.time_lock_reminder"
RELEASE_RELEASED_EVENT_TYPE: str = "release.released"
VAULT_RELEASE_RESET_EVENT_TYPE: str = "vault.release_reset"

# Actor recorded for transitions driven by the periodic reconcilers
RELEASE_SYSTEM_ACTOR_ID: str = "release-engine"


@dataclass(frozen=True, eq=True)
class ReleaseAuditEvent:
    """One auditable fact about a release or vault.

    Attributes:
        event_type: One of the *_EVENT_TYPE constants.
        vault_id: Vault the event concerns.
        occurred_at: When the event happened (time authority clock).
        actor_id: Participant or owner id, or RELEASE_SYSTEM_ACTOR_ID.
        release_id: Release the event concerns, if any.
        details: Event-specific data (decision, counts, status...).
    """

    event_type: str
    vault_id: UUID
    occurred_at: datetime
    actor_id: str = RELEASE_SYSTEM_ACTOR_ID
    release_id: UUID | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def signable_content(self) -> bytes:
        """Return canonical bytes for hash chaining.

        JSON with sorted keys so the output does not depend on dict order.
        """
        return json.dumps(self.to_dict(), sort_keys=True, default=str).encode("utf-8")

    def to_dict(self) -> dict[str, Any]:
        """Convert the event to a JSON-ready dict."""
        return {
            "event_type": self.event_type,
            "vault_id": str(self.vault_id),
            "release_id": str(self.release_id) if self.release_id else None,
            "actor_id": self.actor_id,
            "occurred_at": self.occurred_at.isoformat(),
            "details": self.details,
        }

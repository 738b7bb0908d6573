"""Domain events for lastkey."""

from lastkey.domain.events.release import (
    RELEASE_APPROVED_EVENT_TYPE,
    RELEASE_CONFIRMATION_RECORDED_EVENT_TYPE,
    RELEASE_GRACE_PERIOD_ENDED_EVENT_TYPE,
    RELEASE_REJECTED_EVENT_TYPE,
    RELEASE_RELEASED_EVENT_TYPE,
    RELEASE_REVOKED_EVENT_TYPE,
    RELEASE_SYSTEM_ACTOR_ID,
    RELEASE_TIME_LOCK_REMINDER_EVENT_TYPE,
    RELEASE_TRIGGERED_EVENT_TYPE,
    VAULT_RELEASE_RESET_EVENT_TYPE,
    ReleaseAuditEvent,
)

__all__: list[str] = [
    "RELEASE_APPROVED_EVENT_TYPE",
    "RELEASE_CONFIRMATION_RECORDED_EVENT_TYPE",
    "RELEASE_GRACE_PERIOD_ENDED_EVENT_TYPE",
    "RELEASE_REJECTED_EVENT_TYPE",
    "RELEASE_RELEASED_EVENT_TYPE",
    "RELEASE_REVOKED_EVENT_TYPE",
    "RELEASE_SYSTEM_ACTOR_ID",
    "RELEASE_TIME_LOCK_REMINDER_EVENT_TYPE",
    "RELEASE_TRIGGERED_EVENT_TYPE",
    "VAULT_RELEASE_RESET_EVENT_TYPE",
    "ReleaseAuditEvent",
]

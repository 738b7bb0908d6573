"""Domain models for lastkey."""

from lastkey.domain.models.confirmation import Confirmation, ConfirmationDecision
from lastkey.domain.models.release import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITION_MATRIX,
    Release,
    ReleaseStatus,
)
from lastkey.domain.models.release_context import ReleaseContext
from lastkey.domain.models.rule_set import RuleSet
from lastkey.domain.models.time_unit import TimeUnit
from lastkey.domain.models.vault import (
    OwnerActivity,
    Participant,
    ParticipantRole,
    Vault,
)

__all__: list[str] = [
    "ACTIVE_STATUSES",
    "Confirmation",
    "ConfirmationDecision",
    "OwnerActivity",
    "Participant",
    "ParticipantRole",
    "Release",
    "ReleaseContext",
    "ReleaseStatus",
    "RuleSet",
    "TERMINAL_STATUSES",
    "TRANSITION_MATRIX",
    "TimeUnit",
    "Vault",
]

"""Domain errors for lastkey.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from LastKeyError through one of the four
families in ``base``.
"""

from lastkey.domain.errors.base import (
    ReleaseConflictError,
    ReleaseForbiddenError,
    ReleaseLookupError,
    ReleaseValidationError,
)
from lastkey.domain.errors.concurrent_modification import ConcurrentModificationError
from lastkey.domain.errors.confirmation import (
    CommentTooLongError,
    DuplicateConfirmationError,
    InvalidDecisionError,
    WitnessRoleRequiredError,
)
from lastkey.domain.errors.release import (
    GracePeriodActiveError,
    ReleaseAlreadyActiveError,
    ReleaseAlreadyReleasedError,
    ReleaseInvalidStateError,
    ReleaseNotApprovedError,
    ReleaseNotFoundError,
    TimeLockActiveError,
)
from lastkey.domain.errors.state_transition import (
    InvalidStateTransitionError,
    ReleaseTerminalError,
    TransitionGuardError,
)
from lastkey.domain.errors.vault import (
    ActivityNotTrackedError,
    InvalidRuleSetError,
    NoPolicyError,
    OwnerNotFoundError,
    OwnerRoleRequiredError,
    VaultNotFoundError,
)

__all__: list[str] = [
    "ActivityNotTrackedError",
    "CommentTooLongError",
    "ConcurrentModificationError",
    "DuplicateConfirmationError",
    "GracePeriodActiveError",
    "InvalidDecisionError",
    "InvalidRuleSetError",
    "InvalidStateTransitionError",
    "NoPolicyError",
    "OwnerNotFoundError",
    "OwnerRoleRequiredError",
    "ReleaseAlreadyActiveError",
    "ReleaseAlreadyReleasedError",
    "ReleaseConflictError",
    "ReleaseForbiddenError",
    "ReleaseInvalidStateError",
    "ReleaseLookupError",
    "ReleaseNotApprovedError",
    "ReleaseNotFoundError",
    "ReleaseTerminalError",
    "ReleaseValidationError",
    "TimeLockActiveError",
    "TransitionGuardError",
    "VaultNotFoundError",
    "WitnessRoleRequiredError",
]

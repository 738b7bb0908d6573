"""Per-vault release policy.

A RuleSet is owned by the vault management collaborators and consumed
read-only by the engine. Durations are numbers in the engine's TimeUnit.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from lastkey.domain.errors.vault import InvalidRuleSetError


@dataclass(frozen=True, eq=True)
class RuleSet:
    """Release policy of a single vault.

    Attributes:
        vault_id: Vault the policy belongs to.
        inactivity_period: Units of owner silence before a release starts.
            None means the vault is never released for inactivity.
        grace_period: Units between trigger and witness approval phase.
        time_lock: Units between quorum approval and release.
        approvals_required: Witness approvals needed for quorum.
    """

    vault_id: UUID
    inactivity_period: float | None
    grace_period: float
    time_lock: float
    approvals_required: int = 1

    def __post_init__(self) -> None:
        """Validate rule set invariants."""
        if self.inactivity_period is not None and self.inactivity_period < 0:
            raise InvalidRuleSetError(
                f"inactivity_period must be >= 0, got {self.inactivity_period}"
            )
        if self.grace_period < 0:
            raise InvalidRuleSetError(
                f"grace_period must be >= 0, got {self.grace_period}"
            )
        if self.time_lock < 0:
            raise InvalidRuleSetError(f"time_lock must be >= 0, got {self.time_lock}")
        if self.approvals_required < 1:
            raise InvalidRuleSetError(
                f"approvals_required must be >= 1, got {self.approvals_required}"
            )

    @property
    def monitors_inactivity(self) -> bool:
        """True when the inactivity monitor should watch this vault."""
        return bool(self.inactivity_period)

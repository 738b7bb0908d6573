"""Vault, rule set and owner lookup errors."""

from __future__ import annotations

from uuid import UUID

from lastkey.domain.errors.base import (
    ReleaseForbiddenError,
    ReleaseLookupError,
    ReleaseValidationError,
)


class VaultNotFoundError(ReleaseLookupError):
    """Raised when a vault id is unknown to the vault directory."""

    def __init__(self, vault_id: UUID) -> None:
        self.vault_id = vault_id
        super().__init__(f"Vault {vault_id} not found")


class NoPolicyError(ReleaseLookupError):
    """Raised when a vault has no rule set to drive a release."""

    def __init__(self, vault_id: UUID) -> None:
        self.vault_id = vault_id
        super().__init__(f"Vault {vault_id} has no rule set defined")


class OwnerNotFoundError(ReleaseLookupError):
    """Raised when an owner id is unknown to the vault directory."""

    def __init__(self, owner_id: UUID) -> None:
        self.owner_id = owner_id
        super().__init__(f"Owner {owner_id} not found")


class ActivityNotTrackedError(ReleaseValidationError):
    """Raised when an owner has no recorded last-activity timestamp."""

    def __init__(self, owner_id: UUID) -> None:
        self.owner_id = owner_id
        super().__init__(f"Activity tracking not initialized for owner {owner_id}")


class InvalidRuleSetError(ReleaseValidationError):
    """Raised when rule set values violate their invariants."""


class OwnerRoleRequiredError(ReleaseForbiddenError):
    """Raised when someone other than the vault owner revokes a release."""

    def __init__(self, actor_id: UUID, vault_id: UUID) -> None:
        self.actor_id = actor_id
        self.vault_id = vault_id
        super().__init__(
            f"Participant {actor_id} is not the owner of vault {vault_id}. "
            "Only the owner can revoke a release"
        )

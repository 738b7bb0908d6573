"""Owner inactivity API models."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from lastkey.api.models.common import DateTimeWithZ
from lastkey.application.services.inactivity_service import (
    OwnerInactivityStatus,
    VaultInactivityStatus,
)
from lastkey.domain.models.vault import OwnerActivity


class VaultInactivityStatusResponse(BaseModel):
    """Inactivity state of one owned vault.

    Durations are in seconds.
    """

    vault_id: UUID
    vault_title: str
    state: str
    inactivity_period: float | None = None
    inactivity_period_description: str | None = None
    threshold_at: DateTimeWithZ | None = None
    time_remaining_seconds: float | None = None
    overdue_by_seconds: float | None = None
    has_active_release: bool
    active_release_status: str | None = None

    @classmethod
    def from_status(cls, status: VaultInactivityStatus) -> VaultInactivityStatusResponse:
        return cls(
            vault_id=status.vault_id,
            vault_title=status.vault_title,
            state=status.state.value,
            inactivity_period=status.inactivity_period,
            inactivity_period_description=status.inactivity_period_description,
            threshold_at=status.threshold_at,
            time_remaining_seconds=(
                status.time_remaining.total_seconds() if status.time_remaining else None
            ),
            overdue_by_seconds=(
                status.overdue_by.total_seconds() if status.overdue_by else None
            ),
            has_active_release=status.has_active_release,
            active_release_status=(
                status.active_release_status.value if status.active_release_status else None
            ),
        )


class OwnerInactivityStatusResponse(BaseModel):
    owner_id: UUID
    last_active_at: DateTimeWithZ
    current_time: DateTimeWithZ
    inactive_for_seconds: float
    time_unit: str
    vaults: list[VaultInactivityStatusResponse]
    summary: dict[str, int]

    @classmethod
    def from_status(cls, status: OwnerInactivityStatus) -> OwnerInactivityStatusResponse:
        return cls(
            owner_id=status.owner_id,
            last_active_at=status.last_active_at,
            current_time=status.current_time,
            inactive_for_seconds=status.inactive_for.total_seconds(),
            time_unit=status.time_unit.value,
            vaults=[VaultInactivityStatusResponse.from_status(v) for v in status.vaults],
            summary=status.summary,
        )


class ResetVaultReleaseRequest(BaseModel):
    actor_id: UUID | None = Field(default=None, description="Who reset the vault")


class OwnerActivityResponse(BaseModel):
    """Owner heartbeat result."""

    owner_id: UUID
    last_active_at: DateTimeWithZ | None = None

    @classmethod
    def from_activity(cls, activity: OwnerActivity) -> OwnerActivityResponse:
        return cls(owner_id=activity.owner_id, last_active_at=activity.last_active_at)

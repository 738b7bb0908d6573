"""Release API request/response models."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field

from lastkey.api.models.common import DateTimeWithZ
from lastkey.application.services.release_service import VaultReleaseStatus
from lastkey.application.services.witness_confirmation_service import (
    ConfirmationResult,
)
from lastkey.domain.models.confirmation import MAX_COMMENT_LENGTH
from lastkey.domain.models.release import Release


class TriggerReleaseRequest(BaseModel):
    """Request to open a release manually."""

    vault_id: UUID = Field(..., description="Vault to release")
    actor_id: UUID | None = Field(
        default=None,
        description="Who triggered the release, recorded in the audit trail",
    )


class ConfirmReleaseRequest(BaseModel):
    """A witness decision on a release awaiting approval.

    Attributes:
        witness_id: Acting witness.
        decision: "approved" or "rejected". Other values are rejected with 422
            by the engine itself.
        comment: Optional note kept with the confirmation.
    """

    witness_id: UUID = Field(..., description="Acting witness")
    decision: str = Field(..., description='"approved" or "rejected"')
    comment: str | None = Field(
        default=None,
        max_length=MAX_COMMENT_LENGTH,
        description="Optional note kept with the confirmation",
    )


class FinalizeReleaseRequest(BaseModel):
    actor_id: UUID | None = Field(default=None, description="Who finalized the release")


class RevokeReleaseRequest(BaseModel):
    """Owner request to abort a release before it is released."""

    owner_id: UUID = Field(..., description="Owner of the vault")
    reason: str | None = Field(default=None, max_length=MAX_COMMENT_LENGTH)


class ReleaseResponse(BaseModel):
    """One release attempt."""

    release_id: UUID
    vault_id: UUID
    status: str
    triggered_at: DateTimeWithZ
    grace_period_end: DateTimeWithZ
    countdown_end: DateTimeWithZ | None = None
    completed_at: DateTimeWithZ | None = None
    approvals_received: int = Field(..., ge=0)
    approvals_needed: int = Field(..., ge=1)
    version: int = Field(..., ge=0)

    @classmethod
    def from_release(cls, release: Release) -> ReleaseResponse:
        return cls(
            release_id=release.id,
            vault_id=release.vault_id,
            status=release.status.value,
            triggered_at=release.triggered_at,
            grace_period_end=release.grace_period_end,
            countdown_end=release.countdown_end,
            completed_at=release.completed_at,
            approvals_received=release.approvals_received,
            approvals_needed=release.approvals_needed,
            version=release.version,
        )


class ConfirmationResponse(BaseModel):
    """Recorded confirmation plus the release it moved."""

    confirmation_id: UUID
    release_id: UUID
    witness_id: UUID
    decision: str
    confirmed_at: DateTimeWithZ
    comment: str | None = None
    quorum_reached: bool
    release: ReleaseResponse

    @classmethod
    def from_result(cls, result: ConfirmationResult) -> ConfirmationResponse:
        confirmation = result.confirmation
        return cls(
            confirmation_id=confirmation.id,
            release_id=confirmation.release_id,
            witness_id=confirmation.participant_id,
            decision=confirmation.status.value,
            confirmed_at=confirmation.timestamp,
            comment=confirmation.comment,
            quorum_reached=result.quorum_reached,
            release=ReleaseResponse.from_release(result.release),
        )


class VaultReleaseStatusResponse(BaseModel):
    """Status projection of a vault's most recent non-rejected release."""

    vault_id: UUID
    has_active_release: bool
    is_released: bool
    in_grace_period: bool
    in_time_lock: bool
    release_id: UUID | None = None
    status: str | None = None
    triggered_at: DateTimeWithZ | None = None
    grace_period_end: DateTimeWithZ | None = None
    countdown_end: DateTimeWithZ | None = None
    completed_at: DateTimeWithZ | None = None
    approvals_received: int | None = None
    approvals_needed: int | None = None

    @classmethod
    def from_status(cls, status: VaultReleaseStatus) -> VaultReleaseStatusResponse:
        return cls(
            vault_id=status.vault_id,
            has_active_release=status.has_active_release,
            is_released=status.is_released,
            in_grace_period=status.in_grace_period,
            in_time_lock=status.in_time_lock,
            release_id=status.release_id,
            status=status.status.value if status.status else None,
            triggered_at=status.triggered_at,
            grace_period_end=status.grace_period_end,
            countdown_end=status.countdown_end,
            completed_at=status.completed_at,
            approvals_received=status.approvals_received,
            approvals_needed=status.approvals_needed,
        )


class ReleaseListResponse(BaseModel):
    user_id: UUID
    releases: list[ReleaseResponse]
    count: int = Field(..., ge=0)

    @classmethod
    def for_user(cls, user_id: UUID, releases: list[Release]) -> ReleaseListResponse:
        return cls(
            user_id=user_id,
            releases=[ReleaseResponse.from_release(r) for r in releases],
            count=len(releases),
        )

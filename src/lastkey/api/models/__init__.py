"""API request/response models."""

from lastkey.api.models.health import HealthResponse
from lastkey.api.models.inactivity import (
    OwnerActivityResponse,
    OwnerInactivityStatusResponse,
    ResetVaultReleaseRequest,
    VaultInactivityStatusResponse,
)
from lastkey.api.models.release import (
    ConfirmationResponse,
    ConfirmReleaseRequest,
    FinalizeReleaseRequest,
    ReleaseListResponse,
    ReleaseResponse,
    RevokeReleaseRequest,
    TriggerReleaseRequest,
    VaultReleaseStatusResponse,
)

__all__: list[str] = [
    "ConfirmReleaseRequest",
    "ConfirmationResponse",
    "FinalizeReleaseRequest",
    "HealthResponse",
    "OwnerActivityResponse",
    "OwnerInactivityStatusResponse",
    "ReleaseListResponse",
    "ReleaseResponse",
    "ResetVaultReleaseRequest",
    "RevokeReleaseRequest",
    "TriggerReleaseRequest",
    "VaultInactivityStatusResponse",
    "VaultReleaseStatusResponse",
]

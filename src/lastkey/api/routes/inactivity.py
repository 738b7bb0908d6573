"""Owner inactivity API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from lastkey.api.dependencies.release_engine import get_inactivity_service
from lastkey.api.errors import problem_from_error
from lastkey.api.models.inactivity import (
    OwnerActivityResponse,
    OwnerInactivityStatusResponse,
    ResetVaultReleaseRequest,
)
from lastkey.application.services.inactivity_service import InactivityService
from lastkey.domain.exceptions import LastKeyError

router = APIRouter(prefix="/v1/inactivity", tags=["inactivity"])


@router.get(
    "/owners/{owner_id}/status",
    response_model=OwnerInactivityStatusResponse,
    summary="Inactivity status of every vault an owner holds",
)
async def get_owner_inactivity_status(
    owner_id: UUID,
    request: Request,
    service: InactivityService = Depends(get_inactivity_service),
) -> OwnerInactivityStatusResponse:
    """Per-vault inactivity state with summary counts.

    Raises:
        HTTPException 404: Owner unknown.
        HTTPException 422: Owner activity has never been recorded.
    """
    try:
        status = await service.get_owner_inactivity_status(owner_id)
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return OwnerInactivityStatusResponse.from_status(status)


@router.post(
    "/owners/{owner_id}/heartbeat",
    response_model=OwnerActivityResponse,
    summary="Record owner activity",
)
async def record_owner_activity(
    owner_id: UUID,
    request: Request,
    service: InactivityService = Depends(get_inactivity_service),
) -> OwnerActivityResponse:
    try:
        activity = await service.record_owner_activity(owner_id)
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return OwnerActivityResponse.from_activity(activity)


@router.post(
    "/vaults/{vault_id}/reset",
    response_model=OwnerActivityResponse,
    summary="Clear a vault's release marker",
)
async def reset_vault_release(
    vault_id: UUID,
    request: Request,
    request_data: ResetVaultReleaseRequest | None = None,
    service: InactivityService = Depends(get_inactivity_service),
) -> OwnerActivityResponse:
    """Allow a new inactivity episode for the vault.

    Raises:
        HTTPException 404: Vault unknown.
        HTTPException 409: Vault still has an active release.
    """
    try:
        activity = await service.reset_vault_release(
            vault_id, actor_id=request_data.actor_id if request_data else None
        )
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return OwnerActivityResponse.from_activity(activity)

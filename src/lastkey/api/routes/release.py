"""Release API routes.

Errors are returned as RFC 7807 problem details:
422 malformed input, 404 unknown release or vault, 403 wrong role,
409 conflict with the release's current state.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from lastkey.api.dependencies.release_engine import (
    get_confirmation_service,
    get_release_service,
)
from lastkey.api.errors import problem_from_error
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
from lastkey.application.services.release_service import ReleaseService
from lastkey.application.services.witness_confirmation_service import (
    WitnessConfirmationService,
)
from lastkey.domain.exceptions import LastKeyError

router = APIRouter(prefix="/v1/releases", tags=["releases"])


@router.post(
    "/trigger",
    response_model=ReleaseResponse,
    status_code=201,
    summary="Trigger a release manually",
)
async def trigger_release(
    request_data: TriggerReleaseRequest,
    request: Request,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    """Open a pending release for a vault outside the inactivity scan.

    Raises:
        HTTPException 404: Vault unknown or without a rule set.
        HTTPException 409: Vault already has an active release.
    """
    try:
        release = await service.trigger_release(
            request_data.vault_id, actor_id=request_data.actor_id
        )
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return ReleaseResponse.from_release(release)


@router.post(
    "/{release_id}/confirm",
    response_model=ConfirmationResponse,
    status_code=201,
    summary="Record a witness decision",
)
async def confirm_release(
    release_id: UUID,
    request_data: ConfirmReleaseRequest,
    request: Request,
    service: WitnessConfirmationService = Depends(get_confirmation_service),
) -> ConfirmationResponse:
    """Approve or reject a release awaiting witness approval.

    Raises:
        HTTPException 422: Decision is neither approved nor rejected.
        HTTPException 404: Release unknown.
        HTTPException 403: Caller is not a witness of the vault.
        HTTPException 409: Grace period active, wrong state, or duplicate.
    """
    try:
        result = await service.confirm(
            release_id,
            request_data.witness_id,
            request_data.decision,
            comment=request_data.comment,
        )
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return ConfirmationResponse.from_result(result)


@router.post(
    "/{release_id}/finalize",
    response_model=ReleaseResponse,
    summary="Release an approved vault whose time-lock ended",
)
async def finalize_release(
    release_id: UUID,
    request: Request,
    request_data: FinalizeReleaseRequest | None = None,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    try:
        release = await service.finalize_release(
            release_id,
            actor_id=request_data.actor_id if request_data else None,
        )
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return ReleaseResponse.from_release(release)


@router.post(
    "/{release_id}/revoke",
    response_model=ReleaseResponse,
    summary="Owner aborts a release",
)
async def revoke_release(
    release_id: UUID,
    request_data: RevokeReleaseRequest,
    request: Request,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    """Abort a pending, in-progress or approved release.

    Raises:
        HTTPException 404: Release unknown.
        HTTPException 403: Caller does not own the vault.
        HTTPException 409: Release already released or rejected.
    """
    try:
        release = await service.revoke_release(
            release_id, request_data.owner_id, reason=request_data.reason
        )
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return ReleaseResponse.from_release(release)


@router.get(
    "/vaults/{vault_id}/status",
    response_model=VaultReleaseStatusResponse,
    summary="Release status of a vault",
)
async def get_vault_release_status(
    vault_id: UUID,
    request: Request,
    service: ReleaseService = Depends(get_release_service),
) -> VaultReleaseStatusResponse:
    try:
        status = await service.get_vault_release_status(vault_id)
    except LastKeyError as e:
        raise problem_from_error(e, request) from None
    return VaultReleaseStatusResponse.from_status(status)


@router.get(
    "/participants/{user_id}",
    response_model=ReleaseListResponse,
    summary="Releases of every vault the user owns or participates in",
)
async def list_releases_for_participant(
    user_id: UUID,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseListResponse:
    releases = await service.list_releases_for_participant(user_id)
    return ReleaseListResponse.for_user(user_id, releases)


@router.get(
    "/participants/{user_id}/pending",
    response_model=ReleaseListResponse,
    summary="Pending and in-progress releases visible to the user",
)
async def list_pending_releases_for_participant(
    user_id: UUID,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseListResponse:
    releases = await service.list_pending_releases_for_participant(user_id)
    return ReleaseListResponse.for_user(user_id, releases)

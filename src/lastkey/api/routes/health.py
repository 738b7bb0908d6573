"""Health check endpoint."""

from fastapi import APIRouter, Depends

from lastkey.api.dependencies.release_engine import get_engine
from lastkey.api.models.health import HealthResponse
from lastkey.bootstrap.release_engine import ReleaseEngine

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: ReleaseEngine = Depends(get_engine)) -> HealthResponse:
    """Return health status.

    Returns:
        Health status with 200 OK.
    """
    return HealthResponse(status="healthy", scheduler_running=engine.scheduler.running)

"""API routers."""

from lastkey.api.routes.health import router as health_router
from lastkey.api.routes.inactivity import router as inactivity_router
from lastkey.api.routes.metrics import router as metrics_router
from lastkey.api.routes.release import router as release_router

__all__: list[str] = [
    "health_router",
    "inactivity_router",
    "metrics_router",
    "release_router",
]

"""Release engine FastAPI dependencies.

Every dependency resolves through the bootstrap singleton, so tests swap the
whole engine with set_release_engine() and all routes follow.
"""

from lastkey.application.services.inactivity_service import InactivityService
from lastkey.application.services.release_service import ReleaseService
from lastkey.application.services.witness_confirmation_service import (
    WitnessConfirmationService,
)
from lastkey.bootstrap.release_engine import ReleaseEngine, get_release_engine


def get_engine() -> ReleaseEngine:
    return get_release_engine()


def get_release_service() -> ReleaseService:
    return get_release_engine().release_service


def get_confirmation_service() -> WitnessConfirmationService:
    return get_release_engine().confirmation_service


def get_inactivity_service() -> InactivityService:
    return get_release_engine().inactivity_service

"""Bootstrap wiring: singletons selected from the environment."""

from lastkey.bootstrap.release_engine import (
    ReleaseEngine,
    build_release_engine,
    get_release_engine,
    reset_release_engine,
    set_release_engine,
)

__all__: list[str] = [
    "ReleaseEngine",
    "build_release_engine",
    "get_release_engine",
    "reset_release_engine",
    "set_release_engine",
]

"""Configuration for lastkey."""

from lastkey.config.release_config import (
    DEFAULT_RELEASE_ENGINE_CONFIG,
    TEST_RELEASE_ENGINE_CONFIG,
    ReleaseEngineConfig,
)

__all__: list[str] = [
    "DEFAULT_RELEASE_ENGINE_CONFIG",
    "TEST_RELEASE_ENGINE_CONFIG",
    "ReleaseEngineConfig",
]

"""PostgreSQL persistence adapters (SQLAlchemy async + asyncpg)."""

from lastkey.infrastructure.adapters.persistence.confirmation_repository import (
    PostgresConfirmationRepository,
)
from lastkey.infrastructure.adapters.persistence.release_repository import (
    PostgresReleaseRepository,
)
from lastkey.infrastructure.adapters.persistence.schema import (
    RELEASE_ENGINE_DDL,
    create_schema,
)
from lastkey.infrastructure.adapters.persistence.vault_directory import (
    PostgresVaultDirectory,
)

__all__: list[str] = [
    "PostgresConfirmationRepository",
    "PostgresReleaseRepository",
    "PostgresVaultDirectory",
    "RELEASE_ENGINE_DDL",
    "create_schema",
]

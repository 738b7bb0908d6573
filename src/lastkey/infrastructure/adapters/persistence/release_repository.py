"""PostgreSQL release repository."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.domain.errors.concurrent_modification import ConcurrentModificationError
from lastkey.domain.errors.release import (
    ReleaseAlreadyActiveError,
    ReleaseNotFoundError,
)
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.infrastructure.adapters.persistence.schema import ACTIVE_RELEASE_INDEX

logger = get_logger()

RELEASE_COLUMNS = (
    "id, vault_id, status, triggered_at, grace_period_end, countdown_end, "
    "approvals_needed, approvals_received, completed_at, notified_time_lock, version"
)

INSERT_RELEASE_SQL = f"""
    INSERT INTO releases ({RELEASE_COLUMNS})
    VALUES (:id, :vault_id, :status, :triggered_at, :grace_period_end, :countdown_end,
            :approvals_needed, :approvals_received, :completed_at,
            :notified_time_lock, :version)
"""

UPDATE_RELEASE_CAS_SQL = f"""
    UPDATE releases
    SET status = :status,
        countdown_end = :countdown_end,
        approvals_received = :approvals_received,
        completed_at = :completed_at,
        notified_time_lock = :notified_time_lock,
        version = :expected_version + 1
    WHERE id = :id AND version = :expected_version
    RETURNING {RELEASE_COLUMNS}
"""


def release_params(release: Release) -> dict[str, Any]:
    return {
        "id": release.id,
        "vault_id": release.vault_id,
        "status": release.status.value,
        "triggered_at": release.triggered_at,
        "grace_period_end": release.grace_period_end,
        "countdown_end": release.countdown_end,
        "approvals_needed": release.approvals_needed,
        "approvals_received": release.approvals_received,
        "completed_at": release.completed_at,
        "notified_time_lock": release.notified_time_lock,
        "version": release.version,
    }


def row_to_release(row: Mapping[str, Any]) -> Release:
    return Release(
        id=row["id"],
        vault_id=row["vault_id"],
        status=ReleaseStatus(row["status"]),
        triggered_at=row["triggered_at"],
        grace_period_end=row["grace_period_end"],
        countdown_end=row["countdown_end"],
        approvals_needed=row["approvals_needed"],
        approvals_received=row["approvals_received"],
        completed_at=row["completed_at"],
        notified_time_lock=row["notified_time_lock"],
        version=row["version"],
    )


async def compare_and_set_release(
    session: AsyncSession, release: Release, expected_version: int
) -> Release:
    """Run the version-checked UPDATE inside the caller's transaction.

    Raises:
        ReleaseNotFoundError: If no release has that id.
        ConcurrentModificationError: If the stored version differs.
    """
    params = release_params(release)
    params["expected_version"] = expected_version
    result = await session.execute(text(UPDATE_RELEASE_CAS_SQL), params)
    row = result.mappings().first()
    if row is not None:
        return row_to_release(row)

    found = await session.execute(
        text("SELECT version FROM releases WHERE id = :id"), {"id": release.id}
    )
    current = found.mappings().first()
    if current is None:
        raise ReleaseNotFoundError(release.id)
    raise ConcurrentModificationError(
        release_id=release.id,
        expected_version=expected_version,
        actual_version=current["version"],
    )


class PostgresReleaseRepository(ReleaseRepositoryProtocol):
    """ReleaseRepositoryProtocol on PostgreSQL.

    Attributes:
        _session_factory: SQLAlchemy async session factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, release: Release) -> Release:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(text(INSERT_RELEASE_SQL), release_params(release))
        except IntegrityError as e:
            if ACTIVE_RELEASE_INDEX in str(e.orig):
                logger.info(
                    "release_create_conflict",
                    vault_id=str(release.vault_id),
                    release_id=str(release.id),
                )
                raise ReleaseAlreadyActiveError(vault_id=release.vault_id) from e
            raise
        return release

    async def get(self, release_id: UUID) -> Release | None:
        return await self._fetch_one(
            f"SELECT {RELEASE_COLUMNS} FROM releases WHERE id = :id",
            {"id": release_id},
        )

    async def get_active_for_vault(self, vault_id: UUID) -> Release | None:
        return await self._fetch_one(
            f"""
            SELECT {RELEASE_COLUMNS} FROM releases
            WHERE vault_id = :vault_id
              AND status IN ('pending', 'in_progress', 'approved')
            """,
            {"vault_id": vault_id},
        )

    async def get_latest_for_vault(
        self,
        vault_id: UUID,
        *,
        include_rejected: bool = False,
    ) -> Release | None:
        status_filter = "" if include_rejected else "AND status <> 'rejected'"
        return await self._fetch_one(
            f"""
            SELECT {RELEASE_COLUMNS} FROM releases
            WHERE vault_id = :vault_id {status_filter}
            ORDER BY triggered_at DESC
            LIMIT 1
            """,
            {"vault_id": vault_id},
        )

    async def list_by_status(
        self,
        status: ReleaseStatus,
        *,
        due_before: datetime | None = None,
    ) -> list[Release]:
        due_filter = ""
        params: dict[str, Any] = {"status": status.value}
        if due_before is not None:
            params["due_before"] = due_before
            if status == ReleaseStatus.PENDING:
                due_filter = "AND grace_period_end <= :due_before"
            elif status == ReleaseStatus.APPROVED:
                due_filter = "AND countdown_end <= :due_before"
        return await self._fetch_all(
            f"""
            SELECT {RELEASE_COLUMNS} FROM releases
            WHERE status = :status {due_filter}
            ORDER BY triggered_at ASC
            """,
            params,
        )

    async def list_for_vaults(
        self,
        vault_ids: Sequence[UUID],
        statuses: Sequence[ReleaseStatus] | None = None,
    ) -> list[Release]:
        if not vault_ids:
            return []
        params: dict[str, Any] = {"vault_ids": list(vault_ids)}
        status_filter = ""
        bind = [bindparam("vault_ids", expanding=True)]
        if statuses is not None:
            params["statuses"] = [s.value for s in statuses]
            status_filter = "AND status IN :statuses"
            bind.append(bindparam("statuses", expanding=True))
        query = text(
            f"""
            SELECT {RELEASE_COLUMNS} FROM releases
            WHERE vault_id IN :vault_ids {status_filter}
            ORDER BY triggered_at DESC
            """
        ).bindparams(*bind)
        async with self._session_factory() as session:
            result = await session.execute(query, params)
            return [row_to_release(row) for row in result.mappings().all()]

    async def update(self, release: Release, expected_version: int) -> Release:
        async with self._session_factory() as session, session.begin():
            return await compare_and_set_release(session, release, expected_version)

    async def _fetch_one(self, sql: str, params: dict[str, Any]) -> Release | None:
        async with self._session_factory() as session:
            result = await session.execute(text(sql), params)
            row = result.mappings().first()
            return row_to_release(row) if row is not None else None

    async def _fetch_all(self, sql: str, params: dict[str, Any]) -> list[Release]:
        async with self._session_factory() as session:
            result = await session.execute(text(sql), params)
            return [row_to_release(row) for row in result.mappings().all()]

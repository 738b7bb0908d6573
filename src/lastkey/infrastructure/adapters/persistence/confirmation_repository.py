"""PostgreSQL confirmation repository."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lastkey.application.ports.confirmation_repository import (
    ConfirmationRepositoryProtocol,
)
from lastkey.domain.errors.confirmation import DuplicateConfirmationError
from lastkey.domain.models.confirmation import Confirmation, ConfirmationDecision
from lastkey.domain.models.release import Release
from lastkey.infrastructure.adapters.persistence.release_repository import (
    compare_and_set_release,
)
from lastkey.infrastructure.adapters.persistence.schema import (
    CONFIRMATION_UNIQUE_CONSTRAINT,
)

CONFIRMATION_COLUMNS = "id, release_id, participant_id, status, comment, confirmed_at"


def row_to_confirmation(row: Mapping[str, Any]) -> Confirmation:
    return Confirmation(
        id=row["id"],
        release_id=row["release_id"],
        participant_id=row["participant_id"],
        status=ConfirmationDecision(row["status"]),
        comment=row["comment"],
        timestamp=row["confirmed_at"],
    )


class PostgresConfirmationRepository(ConfirmationRepositoryProtocol):
    """ConfirmationRepositoryProtocol on PostgreSQL.

    record_confirmation() inserts the confirmation and runs the release
    compare-and-swap in one transaction; either both commit or neither does.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, release_id: UUID, participant_id: UUID) -> Confirmation | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text(
                    f"""
                    SELECT {CONFIRMATION_COLUMNS} FROM confirmations
                    WHERE release_id = :release_id AND participant_id = :participant_id
                    """
                ),
                {"release_id": release_id, "participant_id": participant_id},
            )
            row = result.mappings().first()
            return row_to_confirmation(row) if row is not None else None

    async def list_for_release(self, release_id: UUID) -> list[Confirmation]:
        async with self._session_factory() as session:
            result = await session.execute(
                text(
                    f"""
                    SELECT {CONFIRMATION_COLUMNS} FROM confirmations
                    WHERE release_id = :release_id
                    ORDER BY confirmed_at ASC
                    """
                ),
                {"release_id": release_id},
            )
            return [row_to_confirmation(row) for row in result.mappings().all()]

    async def record_confirmation(
        self,
        confirmation: Confirmation,
        release: Release,
        expected_version: int,
    ) -> Release:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    text(
                        f"""
                        INSERT INTO confirmations ({CONFIRMATION_COLUMNS})
                        VALUES (:id, :release_id, :participant_id, :status,
                                :comment, :confirmed_at)
                        """
                    ),
                    {
                        "id": confirmation.id,
                        "release_id": confirmation.release_id,
                        "participant_id": confirmation.participant_id,
                        "status": confirmation.status.value,
                        "comment": confirmation.comment,
                        "confirmed_at": confirmation.timestamp,
                    },
                )
                return await compare_and_set_release(session, release, expected_version)
        except IntegrityError as e:
            if CONFIRMATION_UNIQUE_CONSTRAINT in str(e.orig):
                raise DuplicateConfirmationError(
                    release_id=confirmation.release_id,
                    participant_id=confirmation.participant_id,
                ) from e
            raise

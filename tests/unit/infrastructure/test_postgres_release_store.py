"""Unit tests for the PostgreSQL adapters against a scripted session.

The adapters issue raw SQL through ``text()``; these tests check the
statements, parameters and error mapping without a database.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from lastkey.domain.errors import (
    ConcurrentModificationError,
    DuplicateConfirmationError,
    OwnerNotFoundError,
    ReleaseAlreadyActiveError,
    ReleaseNotFoundError,
    VaultNotFoundError,
)
from lastkey.domain.models.confirmation import Confirmation, ConfirmationDecision
from lastkey.domain.models.release import Release, ReleaseStatus
from lastkey.domain.models.vault import ParticipantRole
from lastkey.infrastructure.adapters.persistence import (
    PostgresConfirmationRepository,
    PostgresReleaseRepository,
    PostgresVaultDirectory,
)
from lastkey.infrastructure.adapters.persistence.release_repository import (
    release_params,
)
from lastkey.infrastructure.adapters.persistence.schema import (
    ACTIVE_RELEASE_INDEX,
    CONFIRMATION_UNIQUE_CONSTRAINT,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeResult:
    def __init__(self, rows: Iterable[dict[str, Any]]) -> None:
        self._rows = list(rows)

    def mappings(self) -> "FakeResult":
        return self

    def first(self) -> dict[str, Any] | None:
        return self._rows[0] if self._rows else None

    def all(self) -> list[dict[str, Any]]:
        return list(self._rows)


class FakeSession:
    """Async session returning scripted results in order."""

    def __init__(self, *results: FakeResult | Exception) -> None:
        self._results = list(results)
        self.executed: list[tuple[str, dict[str, Any] | None]] = []

    async def execute(self, statement: Any, params: dict[str, Any] | None = None) -> FakeResult:
        self.executed.append((str(statement), params))
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def begin(self) -> "FakeSession":
        return self

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc: object) -> bool:
        return False


def factory(session: FakeSession) -> Any:
    return lambda: session


def make_release(**changes: Any) -> Release:
    values: dict[str, Any] = {
        "id": uuid4(),
        "vault_id": uuid4(),
        "triggered_at": NOW,
        "grace_period_end": NOW + timedelta(days=3),
        "approvals_needed": 2,
    }
    values.update(changes)
    return Release(**values)


class TestPostgresReleaseRepository:
    @pytest.mark.asyncio
    async def test_create_maps_active_index_violation(self) -> None:
        release = make_release()
        violation = IntegrityError(
            "INSERT", {}, Exception(f'duplicate key violates "{ACTIVE_RELEASE_INDEX}"')
        )
        repo = PostgresReleaseRepository(factory(FakeSession(violation)))

        with pytest.raises(ReleaseAlreadyActiveError):
            await repo.create(release)

    @pytest.mark.asyncio
    async def test_create_reraises_other_integrity_errors(self) -> None:
        violation = IntegrityError("INSERT", {}, Exception("releases_pkey"))
        repo = PostgresReleaseRepository(factory(FakeSession(violation)))

        with pytest.raises(IntegrityError):
            await repo.create(make_release())

    @pytest.mark.asyncio
    async def test_get_maps_row(self) -> None:
        release = make_release(version=4)
        session = FakeSession(FakeResult([release_params(release)]))
        repo = PostgresReleaseRepository(factory(session))

        assert await repo.get(release.id) == release
        sql, params = session.executed[0]
        assert "FROM releases WHERE id = :id" in sql
        assert params == {"id": release.id}

    @pytest.mark.asyncio
    async def test_update_success_returns_bumped_row(self) -> None:
        release = make_release(version=2)
        moved = release.with_status(ReleaseStatus.IN_PROGRESS)
        session = FakeSession(FakeResult([release_params(moved.with_version(3))]))
        repo = PostgresReleaseRepository(factory(session))

        stored = await repo.update(moved, 2)

        assert stored.version == 3
        sql, params = session.executed[0]
        assert "WHERE id = :id AND version = :expected_version" in sql
        assert params is not None and params["expected_version"] == 2

    @pytest.mark.asyncio
    async def test_update_conflict_vs_missing(self) -> None:
        release = make_release(version=2)
        conflict = FakeSession(FakeResult([]), FakeResult([{"version": 4}]))
        missing = FakeSession(FakeResult([]), FakeResult([]))

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await PostgresReleaseRepository(factory(conflict)).update(release, 2)
        assert exc_info.value.actual_version == 4
        assert exc_info.value.superseded
        with pytest.raises(ReleaseNotFoundError):
            await PostgresReleaseRepository(factory(missing)).update(release, 2)

    @pytest.mark.asyncio
    async def test_list_by_status_due_filters(self) -> None:
        pending = FakeSession(FakeResult([]))
        approved = FakeSession(FakeResult([]))

        await PostgresReleaseRepository(factory(pending)).list_by_status(
            ReleaseStatus.PENDING, due_before=NOW
        )
        await PostgresReleaseRepository(factory(approved)).list_by_status(
            ReleaseStatus.APPROVED, due_before=NOW
        )

        assert "grace_period_end <= :due_before" in pending.executed[0][0]
        assert "countdown_end <= :due_before" in approved.executed[0][0]

    @pytest.mark.asyncio
    async def test_latest_for_vault_excludes_rejected_by_default(self) -> None:
        session = FakeSession(FakeResult([]), FakeResult([]))
        repo = PostgresReleaseRepository(factory(session))

        await repo.get_latest_for_vault(uuid4())
        await repo.get_latest_for_vault(uuid4(), include_rejected=True)

        assert "status <> 'rejected'" in session.executed[0][0]
        assert "status <> 'rejected'" not in session.executed[1][0]

    @pytest.mark.asyncio
    async def test_list_for_vaults_without_ids_skips_query(self) -> None:
        session = FakeSession()

        assert await PostgresReleaseRepository(factory(session)).list_for_vaults([]) == []
        assert session.executed == []


class TestPostgresConfirmationRepository:
    def _confirmation(self, release: Release) -> Confirmation:
        return Confirmation(
            id=uuid4(),
            release_id=release.id,
            participant_id=uuid4(),
            status=ConfirmationDecision.APPROVED,
            timestamp=NOW,
        )

    @pytest.mark.asyncio
    async def test_insert_and_cas_share_one_session(self) -> None:
        release = make_release(status=ReleaseStatus.IN_PROGRESS, version=1)
        updated = release.with_changes(approvals_received=1)
        session = FakeSession(FakeResult([]), FakeResult([release_params(updated.with_version(2))]))
        repo = PostgresConfirmationRepository(factory(session))

        stored = await repo.record_confirmation(self._confirmation(release), updated, 1)

        assert stored.approvals_received == 1
        assert stored.version == 2
        assert "INSERT INTO confirmations" in session.executed[0][0]
        assert "UPDATE releases" in session.executed[1][0]

    @pytest.mark.asyncio
    async def test_unique_violation_is_duplicate(self) -> None:
        release = make_release(status=ReleaseStatus.IN_PROGRESS, version=1)
        violation = IntegrityError("INSERT", {}, Exception(CONFIRMATION_UNIQUE_CONSTRAINT))
        repo = PostgresConfirmationRepository(factory(FakeSession(violation)))

        with pytest.raises(DuplicateConfirmationError):
            await repo.record_confirmation(self._confirmation(release), release, 1)

    @pytest.mark.asyncio
    async def test_stale_version_raises(self) -> None:
        release = make_release(status=ReleaseStatus.IN_PROGRESS, version=1)
        session = FakeSession(FakeResult([]), FakeResult([]), FakeResult([{"version": 2}]))
        repo = PostgresConfirmationRepository(factory(session))

        with pytest.raises(ConcurrentModificationError):
            await repo.record_confirmation(self._confirmation(release), release, 1)


class TestPostgresVaultDirectory:
    @pytest.mark.asyncio
    async def test_get_vault_joins_rule_set_and_participants(self) -> None:
        vault_id, owner_id, witness_id = uuid4(), uuid4(), uuid4()
        vault_row = {
            "id": vault_id,
            "owner_id": owner_id,
            "title": "Letters",
            "release_triggered": False,
            "rule_vault_id": vault_id,
            "inactivity_period": 30,
            "grace_period": 3,
            "time_lock": 2,
            "approvals_required": 1,
        }
        participant_row = {
            "vault_id": vault_id,
            "participant_id": witness_id,
            "role": "witness",
            "email": "w@example.com",
            "display_name": None,
        }
        session = FakeSession(FakeResult([vault_row]), FakeResult([participant_row]))
        directory = PostgresVaultDirectory(factory(session))

        vault = await directory.get_vault(vault_id)

        assert vault is not None
        assert vault.rule_set is not None and vault.rule_set.inactivity_period == 30
        assert vault.has_role(witness_id, ParticipantRole.WITNESS)
        assert session.executed[1][1] == {"vault_ids": [vault_id]}

    @pytest.mark.asyncio
    async def test_vault_without_rule_set(self) -> None:
        vault_id = uuid4()
        row = {
            "id": vault_id,
            "owner_id": uuid4(),
            "title": "Empty",
            "release_triggered": True,
            "rule_vault_id": None,
            "inactivity_period": None,
            "grace_period": None,
            "time_lock": None,
            "approvals_required": None,
        }
        directory = PostgresVaultDirectory(
            factory(FakeSession(FakeResult([row]), FakeResult([])))
        )

        vault = await directory.get_vault(vault_id)

        assert vault is not None
        assert vault.rule_set is None
        assert vault.release_triggered
        assert vault.participants == ()

    @pytest.mark.asyncio
    async def test_unknown_vault_issues_one_query(self) -> None:
        session = FakeSession(FakeResult([]))

        assert await PostgresVaultDirectory(factory(session)).get_vault(uuid4()) is None
        assert len(session.executed) == 1

    @pytest.mark.asyncio
    async def test_writes_raise_when_row_missing(self) -> None:
        directory = PostgresVaultDirectory(
            factory(FakeSession(FakeResult([]), FakeResult([])))
        )

        with pytest.raises(OwnerNotFoundError):
            await directory.record_activity(uuid4(), NOW)
        with pytest.raises(VaultNotFoundError):
            await directory.mark_release_triggered(uuid4())

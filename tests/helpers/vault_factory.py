"""Vault fixture data for the in-memory vault directory."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID, uuid4

from lastkey.domain.models.rule_set import RuleSet
from lastkey.domain.models.vault import (
    OwnerActivity,
    Participant,
    ParticipantRole,
    Vault,
)
from lastkey.infrastructure.stubs.vault_directory_stub import VaultDirectoryStub


@dataclass(frozen=True)
class VaultFixture:
    vault: Vault
    owner_id: UUID
    witnesses: tuple[Participant, ...]
    beneficiaries: tuple[Participant, ...]

    @property
    def vault_id(self) -> UUID:
        return self.vault.id

    @property
    def witness_ids(self) -> list[UUID]:
        return [w.participant_id for w in self.witnesses]


def seed_vault(
    directory: VaultDirectoryStub,
    *,
    last_active_at: datetime | None,
    inactivity_period: float | None = 10,
    grace_period: float = 3,
    time_lock: float = 2,
    approvals_required: int = 2,
    witness_count: int = 2,
    beneficiary_count: int = 1,
    with_rule_set: bool = True,
    title: str = "Family documents",
    owner_id: UUID | None = None,
) -> VaultFixture:
    """Add an owner and one vault with witnesses and beneficiaries."""
    owner_id = owner_id or uuid4()
    vault_id = uuid4()
    witnesses = tuple(
        Participant(
            participant_id=uuid4(),
            role=ParticipantRole.WITNESS,
            email=f"witness{i}@example.com",
            display_name=f"Witness {i}",
        )
        for i in range(witness_count)
    )
    beneficiaries = tuple(
        Participant(
            participant_id=uuid4(),
            role=ParticipantRole.BENEFICIARY,
            email=f"beneficiary{i}@example.com",
        )
        for i in range(beneficiary_count)
    )
    rule_set = (
        RuleSet(
            vault_id=vault_id,
            inactivity_period=inactivity_period,
            grace_period=grace_period,
            time_lock=time_lock,
            approvals_required=approvals_required,
        )
        if with_rule_set
        else None
    )
    vault = Vault(
        id=vault_id,
        owner_id=owner_id,
        title=title,
        rule_set=rule_set,
        participants=witnesses + beneficiaries,
    )
    directory.add_owner(
        OwnerActivity(owner_id=owner_id, last_active_at=last_active_at, email="owner@example.com")
    )
    directory.add_vault(vault)
    return VaultFixture(
        vault=vault,
        owner_id=owner_id,
        witnesses=witnesses,
        beneficiaries=beneficiaries,
    )

"""Vault, participant and owner-activity models.

Vaults are owned by the vault management collaborators. The engine only
reads them, except for the ``release_triggered`` marker which it sets when
it opens a release.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from uuid import UUID

from lastkey.domain.models.rule_set import RuleSet


class ParticipantRole(Enum):
    """Role a participant holds on a vault.

    Roles:
        BENEFICIARY: Receives the vault contents after release
        SHARED: Co-user of the vault, informed of release progress
        WITNESS: Approves or vetoes a release
    """

    BENEFICIARY = "beneficiary"
    SHARED = "shared"
    WITNESS = "witness"


@dataclass(frozen=True, eq=True)
class Participant:
    """A user attached to a vault in some role."""

    participant_id: UUID
    role: ParticipantRole
    email: str | None = None
    display_name: str | None = None


@dataclass(frozen=True, eq=True)
class Vault:
    """A vault as seen by the release engine.

    Attributes:
        id: Vault id.
        owner_id: The owner whose inactivity is watched.
        title: Vault title used in notifications.
        rule_set: Release policy, None when the owner never configured one.
        participants: Witnesses, beneficiaries and shared users.
        release_triggered: Set when a release opens, cleared by an
            explicit reset. Keeps one inactivity episode to one release.
    """

    id: UUID
    owner_id: UUID
    title: str
    rule_set: RuleSet | None = None
    participants: tuple[Participant, ...] = field(default_factory=tuple)
    release_triggered: bool = False

    def participants_with_role(self, role: ParticipantRole) -> tuple[Participant, ...]:
        """Return the participants holding the given role."""
        return tuple(p for p in self.participants if p.role == role)

    @property
    def witnesses(self) -> tuple[Participant, ...]:
        return self.participants_with_role(ParticipantRole.WITNESS)

    @property
    def beneficiaries(self) -> tuple[Participant, ...]:
        return self.participants_with_role(ParticipantRole.BENEFICIARY)

    def has_role(self, participant_id: UUID, role: ParticipantRole) -> bool:
        """Check whether a participant holds a role on this vault."""
        return any(
            p.participant_id == participant_id and p.role == role
            for p in self.participants
        )

    @property
    def recipients(self) -> tuple[Participant, ...]:
        """One entry per person; a user holding several roles keeps the first listed."""
        seen: set[UUID] = set()
        unique: list[Participant] = []
        for participant in self.participants:
            if participant.participant_id not in seen:
                seen.add(participant.participant_id)
                unique.append(participant)
        return tuple(unique)

    def is_owner(self, user_id: UUID) -> bool:
        return self.owner_id == user_id

    def is_participant(self, user_id: UUID) -> bool:
        return any(p.participant_id == user_id for p in self.participants)

    def with_release_triggered(self, triggered: bool) -> Vault:
        """Return a copy with the inactivity marker set or cleared."""
        return replace(self, release_triggered=triggered)


@dataclass(frozen=True, eq=True)
class OwnerActivity:
    """Last recorded activity of a vault owner.

    Attributes:
        owner_id: The owner.
        last_active_at: Last authenticated activity, None if never tracked.
        email: Contact address, used only for reporting.
    """

    owner_id: UUID
    last_active_at: datetime | None
    email: str | None = None

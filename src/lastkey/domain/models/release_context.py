"""Read model assembled once per operation.

Services fetch the release, then its vault, rule set and participants, and
hand the result to the state machine and notification fan-out as plain data.
"""

from __future__ import annotations

from dataclasses import dataclass

from lastkey.domain.models.release import Release
from lastkey.domain.models.rule_set import RuleSet
from lastkey.domain.models.vault import Participant, Vault


@dataclass(frozen=True)
class ReleaseContext:
    """A release together with the vault data its transitions need."""

    release: Release
    vault: Vault
    rule_set: RuleSet

    @property
    def participants(self) -> tuple[Participant, ...]:
        return self.vault.participants

    @property
    def recipients(self) -> tuple[Participant, ...]:
        return self.vault.recipients

    @property
    def witnesses(self) -> tuple[Participant, ...]:
        return self.vault.witnesses

    @property
    def beneficiaries(self) -> tuple[Participant, ...]:
        return self.vault.beneficiaries

    def with_release(self, release: Release) -> ReleaseContext:
        """Return the same context around an updated release."""
        return ReleaseContext(release=release, vault=self.vault, rule_set=self.rule_set)

"""In-memory audit sink with a BLAKE3 hash chain.

Each stored entry links to the previous entry's hash, so editing or removing
any entry breaks verify_chain() for every entry after it.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import blake3

from lastkey.application.ports.audit_sink import AuditSinkProtocol
from lastkey.domain.events.release import ReleaseAuditEvent

# previous_hash of the first entry
GENESIS_HASH: str = "0" * 64


@dataclass(frozen=True)
class AuditEntry:
    sequence: int
    event: ReleaseAuditEvent
    previous_hash: str
    hash: str


def compute_entry_hash(event: ReleaseAuditEvent, previous_hash: str) -> str:
    """BLAKE3 over the event's canonical content and the previous hash."""
    hasher = blake3.blake3(event.signable_content())
    hasher.update(previous_hash.encode("utf-8"))
    return hasher.hexdigest()


class AuditSinkStub(AuditSinkProtocol):
    """Hash-chained in-memory audit log."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []
        self._lock = asyncio.Lock()

    async def record(self, event: ReleaseAuditEvent) -> None:
        async with self._lock:
            previous_hash = self._entries[-1].hash if self._entries else GENESIS_HASH
            self._entries.append(
                AuditEntry(
                    sequence=len(self._entries) + 1,
                    event=event,
                    previous_hash=previous_hash,
                    hash=compute_entry_hash(event, previous_hash),
                )
            )

    @property
    def entries(self) -> list[AuditEntry]:
        return list(self._entries)

    @property
    def events(self) -> list[ReleaseAuditEvent]:
        return [e.event for e in self._entries]

    def events_of_type(self, event_type: str) -> list[ReleaseAuditEvent]:
        return [e.event for e in self._entries if e.event.event_type == event_type]

    def verify_chain(self) -> bool:
        """Recompute every link. False on the first broken one."""
        previous_hash = GENESIS_HASH
        for entry in self._entries:
            if entry.previous_hash != previous_hash:
                return False
            if entry.hash != compute_entry_hash(entry.event, previous_hash):
                return False
            previous_hash = entry.hash
        return True

    def clear(self) -> None:
        self._entries.clear()

"""Audit sink port."""

from __future__ import annotations

from typing import Protocol

from lastkey.domain.events.release import ReleaseAuditEvent


class AuditSinkProtocol(Protocol):
    """Protocol for recording audit events.

    Persistence mechanics belong to the sink. A failed write is logged by
    the engine and does not undo the transition it describes.
    """

    async def record(self, event: ReleaseAuditEvent) -> None:
        ...

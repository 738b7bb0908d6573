"""Notifier port.

Outbound delivery (email, push) is an external collaborator. Delivery is
best-effort: the engine logs and swallows failures.
"""

from __future__ import annotations

from typing import Protocol

from lastkey.domain.models.vault import Participant


class NotifierProtocol(Protocol):
    """Protocol for sending one message to one participant."""

    async def send(self, recipient: Participant, subject: str, body: str) -> None:
        """Send a message.

        Raises:
            Exception: Any delivery failure. Callers never let it reach
                the state transition.
        """
        ...

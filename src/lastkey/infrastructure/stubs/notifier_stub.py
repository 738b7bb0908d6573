"""In-memory notifier that records every message it is asked to send."""

from __future__ import annotations

from dataclasses import dataclass

from lastkey.application.ports.notifier import NotifierProtocol
from lastkey.domain.models.vault import Participant


@dataclass(frozen=True)
class SentNotification:
    recipient: Participant
    subject: str
    body: str


class NotifierStub(NotifierProtocol):
    """Notifier that keeps sent messages in memory.

    Set ``fail_with`` to make every send raise, for exercising the engine's
    best-effort delivery path.
    """

    def __init__(self) -> None:
        self.sent: list[SentNotification] = []
        self.fail_with: Exception | None = None

    async def send(self, recipient: Participant, subject: str, body: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(SentNotification(recipient=recipient, subject=subject, body=body))

    def sent_to(self, participant_id: object) -> list[SentNotification]:
        return [n for n in self.sent if n.recipient.participant_id == participant_id]

    def subjects(self) -> list[str]:
        return [n.subject for n in self.sent]

    def clear(self) -> None:
        self.sent.clear()

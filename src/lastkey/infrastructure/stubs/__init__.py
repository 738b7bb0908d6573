"""In-memory implementations of every port.

Used by tests, the simulation script, and the default wiring when no
DATABASE_URL is configured.
"""

from lastkey.infrastructure.stubs.audit_sink_stub import AuditSinkStub
from lastkey.infrastructure.stubs.confirmation_repository_stub import (
    ConfirmationRepositoryStub,
)
from lastkey.infrastructure.stubs.notifier_stub import NotifierStub, SentNotification
from lastkey.infrastructure.stubs.release_repository_stub import ReleaseRepositoryStub
from lastkey.infrastructure.stubs.vault_directory_stub import VaultDirectoryStub

__all__: list[str] = [
    "AuditSinkStub",
    "ConfirmationRepositoryStub",
    "NotifierStub",
    "ReleaseRepositoryStub",
    "SentNotification",
    "VaultDirectoryStub",
]

"""Application ports for lastkey."""

from lastkey.application.ports.audit_sink import AuditSinkProtocol
from lastkey.application.ports.confirmation_repository import (
    ConfirmationRepositoryProtocol,
)
from lastkey.application.ports.notifier import NotifierProtocol
from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.ports.vault_directory import VaultDirectoryProtocol

__all__: list[str] = [
    "AuditSinkProtocol",
    "ConfirmationRepositoryProtocol",
    "NotifierProtocol",
    "ReleaseRepositoryProtocol",
    "TimeAuthorityProtocol",
    "VaultDirectoryProtocol",
]

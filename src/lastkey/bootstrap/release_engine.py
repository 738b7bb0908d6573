"""Bootstrap wiring for the release engine.

Builds every port implementation and service once and hands out the
resulting container. PostgreSQL repositories are selected when DATABASE_URL
is set; otherwise everything runs on the in-memory stubs.

Usage:
    from lastkey.bootstrap.release_engine import get_release_engine

    engine = get_release_engine()
    await engine.release_service.trigger_release(vault_id)
"""

from __future__ import annotations

from dataclasses import dataclass

from lastkey.application.ports.audit_sink import AuditSinkProtocol
from lastkey.application.ports.confirmation_repository import (
    ConfirmationRepositoryProtocol,
)
from lastkey.application.ports.notifier import NotifierProtocol
from lastkey.application.ports.release_repository import ReleaseRepositoryProtocol
from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.application.ports.vault_directory import VaultDirectoryProtocol
from lastkey.application.services.grace_period_reconciler import GracePeriodReconciler
from lastkey.application.services.inactivity_monitor_service import (
    InactivityMonitorService,
)
from lastkey.application.services.inactivity_service import InactivityService
from lastkey.application.services.reconciliation_scheduler import (
    ReconciliationScheduler,
)
from lastkey.application.services.release_audit_recorder import ReleaseAuditRecorder
from lastkey.application.services.release_context_assembler import (
    ReleaseContextAssembler,
)
from lastkey.application.services.release_notification_service import (
    ReleaseNotificationService,
)
from lastkey.application.services.release_opener import ReleaseOpener
from lastkey.application.services.release_service import ReleaseService
from lastkey.application.services.release_updater import ReleaseUpdater
from lastkey.application.services.time_lock_reconciler import TimeLockReconciler
from lastkey.application.services.time_lock_service import TimeLockService
from lastkey.application.services.witness_confirmation_service import (
    WitnessConfirmationService,
)
from lastkey.bootstrap.database import get_session_factory, is_database_configured
from lastkey.config.release_config import ReleaseEngineConfig
from lastkey.infrastructure.adapters.persistence import (
    PostgresConfirmationRepository,
    PostgresReleaseRepository,
    PostgresVaultDirectory,
)
from lastkey.infrastructure.adapters.system_time_authority import SystemTimeAuthority
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service
from lastkey.infrastructure.stubs import (
    AuditSinkStub,
    ConfirmationRepositoryStub,
    NotifierStub,
    ReleaseRepositoryStub,
    VaultDirectoryStub,
)


@dataclass(frozen=True)
class ReleaseEngine:
    """Every port and service of one wired release engine."""

    config: ReleaseEngineConfig
    time_authority: TimeAuthorityProtocol
    metrics: MetricsCollector
    releases: ReleaseRepositoryProtocol
    confirmations: ConfirmationRepositoryProtocol
    vault_directory: VaultDirectoryProtocol
    notifier: NotifierProtocol
    audit_sink: AuditSinkProtocol
    release_service: ReleaseService
    confirmation_service: WitnessConfirmationService
    inactivity_service: InactivityService
    time_lock_service: TimeLockService
    inactivity_monitor: InactivityMonitorService
    grace_period_reconciler: GracePeriodReconciler
    time_lock_reconciler: TimeLockReconciler
    scheduler: ReconciliationScheduler


def build_release_engine(
    config: ReleaseEngineConfig | None = None,
    *,
    time_authority: TimeAuthorityProtocol | None = None,
    vault_directory: VaultDirectoryProtocol | None = None,
    notifier: NotifierProtocol | None = None,
    audit_sink: AuditSinkProtocol | None = None,
    metrics: MetricsCollector | None = None,
    use_database: bool | None = None,
) -> ReleaseEngine:
    """Wire a release engine.

    Args:
        config: Engine configuration (default: from environment).
        time_authority: Clock (default: SystemTimeAuthority).
        vault_directory: Vault directory override.
        notifier: Notifier override (default: NotifierStub).
        audit_sink: Audit sink override (default: AuditSinkStub).
        metrics: Metrics collector (default: process singleton).
        use_database: Force PostgreSQL (True) or stubs (False). Defaults to
            whether DATABASE_URL is set.
    """
    config = config or ReleaseEngineConfig.from_environment()
    time_authority = time_authority or SystemTimeAuthority()
    metrics = metrics or get_metrics_collector()
    if use_database is None:
        use_database = is_database_configured()

    releases: ReleaseRepositoryProtocol
    confirmations: ConfirmationRepositoryProtocol
    if use_database:
        session_factory = get_session_factory()
        releases = PostgresReleaseRepository(session_factory)
        confirmations = PostgresConfirmationRepository(session_factory)
        vault_directory = vault_directory or PostgresVaultDirectory(session_factory)
    else:
        release_stub = ReleaseRepositoryStub()
        releases = release_stub
        confirmations = ConfirmationRepositoryStub(release_stub)
        vault_directory = vault_directory or VaultDirectoryStub()

    notifier = notifier or NotifierStub()
    audit_sink = audit_sink or AuditSinkStub()
    time_unit = config.time_unit

    audit = ReleaseAuditRecorder(audit_sink, metrics=metrics)
    notifications = ReleaseNotificationService(notifier, time_unit, metrics=metrics)
    assembler = ReleaseContextAssembler(vault_directory)
    updater = ReleaseUpdater(releases, max_retries=config.max_cas_retries)
    opener = ReleaseOpener(
        releases, vault_directory, audit, time_authority, time_unit, metrics=metrics
    )
    time_lock = TimeLockService(
        updater, assembler, notifications, audit, time_authority, metrics=metrics
    )

    inactivity_monitor = InactivityMonitorService(
        releases, vault_directory, opener, time_authority, time_unit
    )
    grace_period_reconciler = GracePeriodReconciler(
        releases, updater, assembler, notifications, audit, time_authority, metrics=metrics
    )
    time_lock_reconciler = TimeLockReconciler(
        releases,
        time_lock,
        assembler,
        notifications,
        audit,
        time_authority,
        time_unit,
        reminder_threshold=config.reminder_threshold,
    )

    get_logger_for_service("release_engine_bootstrap").info(
        "release_engine_built",
        time_unit=time_unit.value,
        store="postgresql" if use_database else "memory",
    )

    return ReleaseEngine(
        config=config,
        time_authority=time_authority,
        metrics=metrics,
        releases=releases,
        confirmations=confirmations,
        vault_directory=vault_directory,
        notifier=notifier,
        audit_sink=audit_sink,
        release_service=ReleaseService(
            releases,
            vault_directory,
            opener,
            updater,
            time_lock,
            assembler,
            notifications,
            audit,
            time_authority,
            metrics=metrics,
        ),
        confirmation_service=WitnessConfirmationService(
            releases,
            confirmations,
            assembler,
            notifications,
            audit,
            time_lock,
            time_authority,
            time_unit,
            max_retries=config.max_cas_retries,
            metrics=metrics,
        ),
        inactivity_service=InactivityService(
            releases, vault_directory, audit, time_authority, time_unit
        ),
        time_lock_service=time_lock,
        inactivity_monitor=inactivity_monitor,
        grace_period_reconciler=grace_period_reconciler,
        time_lock_reconciler=time_lock_reconciler,
        scheduler=ReconciliationScheduler(
            inactivity_monitor,
            grace_period_reconciler,
            time_lock_reconciler,
            config,
            metrics=metrics,
        ),
    )


_release_engine: ReleaseEngine | None = None


def get_release_engine() -> ReleaseEngine:
    """Get the release engine instance, building it on first call."""
    global _release_engine
    if _release_engine is None:
        _release_engine = build_release_engine()
    return _release_engine


def set_release_engine(engine: ReleaseEngine) -> None:
    """Set a custom release engine (for testing)."""
    global _release_engine
    _release_engine = engine


def reset_release_engine() -> None:
    """Reset the release engine singleton (for testing)."""
    global _release_engine
    _release_engine = None

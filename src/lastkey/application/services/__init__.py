"""Application services for lastkey."""

from lastkey.application.services.grace_period_reconciler import GracePeriodReconciler
from lastkey.application.services.inactivity_monitor_service import (
    InactivityMonitorService,
)
from lastkey.application.services.inactivity_service import (
    InactivityService,
    OwnerInactivityStatus,
    VaultInactivityState,
    VaultInactivityStatus,
)
from lastkey.application.services.reconciliation_scheduler import (
    ReconciliationPassResult,
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
from lastkey.application.services.release_service import (
    ReleaseService,
    VaultReleaseStatus,
)
from lastkey.application.services.release_updater import ReleaseUpdater
from lastkey.application.services.time_lock_reconciler import (
    TimeLockPassResult,
    TimeLockReconciler,
)
from lastkey.application.services.time_lock_service import TimeLockService
from lastkey.application.services.witness_confirmation_service import (
    ConfirmationResult,
    WitnessConfirmationService,
)

__all__: list[str] = [
    "ConfirmationResult",
    "GracePeriodReconciler",
    "InactivityMonitorService",
    "InactivityService",
    "OwnerInactivityStatus",
    "ReconciliationPassResult",
    "ReconciliationScheduler",
    "ReleaseAuditRecorder",
    "ReleaseContextAssembler",
    "ReleaseNotificationService",
    "ReleaseOpener",
    "ReleaseService",
    "ReleaseUpdater",
    "TimeLockPassResult",
    "TimeLockReconciler",
    "TimeLockService",
    "VaultInactivityState",
    "VaultInactivityStatus",
    "VaultReleaseStatus",
    "WitnessConfirmationService",
]

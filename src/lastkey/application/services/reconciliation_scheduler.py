"""Periodic reconciliation jobs.

Three independent loops, each running one idempotent scan-and-transition
pass per interval:

- inactivity_monitor
- grace_period_reconciler
- time_lock_reconciler

Intervals come from ReleaseEngineConfig and are expressed in the engine's
TimeUnit, so compressing time compresses polling too. A failing pass is
logged and counted, and the loop keeps going; transitions committed before
the failure stay committed and the next pass picks up the rest.

Example:
    >>> scheduler = ReconciliationScheduler(monitor, grace, time_lock, config)
    >>> await scheduler.start()
    >>> # ... application runs ...
    >>> await scheduler.stop()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from lastkey.application.services.grace_period_reconciler import GracePeriodReconciler
from lastkey.application.services.inactivity_monitor_service import (
    InactivityMonitorService,
)
from lastkey.application.services.time_lock_reconciler import (
    TimeLockPassResult,
    TimeLockReconciler,
)
from lastkey.config.release_config import ReleaseEngineConfig
from lastkey.domain.models.release import Release
from lastkey.infrastructure.monitoring.metrics import (
    MetricsCollector,
    get_metrics_collector,
)
from lastkey.infrastructure.observability.logging import get_logger_for_service

INACTIVITY_JOB = "inactivity_monitor"
GRACE_PERIOD_JOB = "grace_period_reconciler"
TIME_LOCK_JOB = "time_lock_reconciler"


class PeriodicJob:
    """One background loop calling ``run_once`` every ``interval_seconds``.

    Attributes:
        name: Job name, used in logs and metric labels.
        interval_seconds: Time between the start of two passes.
    """

    def __init__(
        self,
        name: str,
        run_once: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        metrics: MetricsCollector,
    ) -> None:
        self.name = name
        self.interval_seconds = interval_seconds
        self._run_once = run_once
        self._metrics = metrics
        self._running: bool = False
        self._task: asyncio.Task[None] | None = None
        self._log = get_logger_for_service("reconciliation_scheduler").bind(job=name)

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the loop. Calling start twice is a no-op."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop(), name=f"lastkey-{self.name}")
        self._log.info("reconciler_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._log.info("reconciler_stopped")

    async def run_once(self) -> Any:
        """Run a single pass, counting it. Errors propagate."""
        try:
            result = await self._run_once()
        except Exception:
            self._metrics.increment_reconciler_failures(self.name)
            raise
        self._metrics.increment_reconciler_ticks(self.name)
        return result

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running:
            started = loop.time()
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._log.error("reconciler_tick_failed", error=str(e), exc_info=True)
            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))


@dataclass(frozen=True)
class ReconciliationPassResult:
    """Outcome of running each job once."""

    triggered: list[Release]
    promoted: list[Release]
    time_lock: TimeLockPassResult


class ReconciliationScheduler:
    """Owns the three periodic jobs of the release engine."""

    def __init__(
        self,
        inactivity_monitor: InactivityMonitorService,
        grace_period_reconciler: GracePeriodReconciler,
        time_lock_reconciler: TimeLockReconciler,
        config: ReleaseEngineConfig,
        metrics: MetricsCollector | None = None,
    ) -> None:
        metrics = metrics or get_metrics_collector()
        self._inactivity = PeriodicJob(
            INACTIVITY_JOB,
            inactivity_monitor.run_once,
            config.inactivity_scan_seconds,
            metrics,
        )
        self._grace = PeriodicJob(
            GRACE_PERIOD_JOB,
            grace_period_reconciler.run_once,
            config.grace_scan_seconds,
            metrics,
        )
        self._time_lock = PeriodicJob(
            TIME_LOCK_JOB,
            time_lock_reconciler.run_once,
            config.time_lock_scan_seconds,
            metrics,
        )
        self._log = get_logger_for_service("reconciliation_scheduler")

    @property
    def jobs(self) -> tuple[PeriodicJob, ...]:
        return (self._inactivity, self._grace, self._time_lock)

    @property
    def running(self) -> bool:
        return any(job.running for job in self.jobs)

    async def start(self) -> None:
        for job in self.jobs:
            await job.start()

    async def stop(self) -> None:
        for job in self.jobs:
            await job.stop()

    async def run_once(self) -> ReconciliationPassResult:
        """Run each job once, in scan order (for scripts and tests)."""
        triggered = await self._inactivity.run_once()
        promoted = await self._grace.run_once()
        time_lock = await self._time_lock.run_once()
        self._log.info(
            "reconciliation_pass_complete",
            triggered=len(triggered),
            promoted=len(promoted),
            announced=len(time_lock.announced),
            reminded=len(time_lock.reminded),
            released=len(time_lock.released),
        )
        return ReconciliationPassResult(
            triggered=triggered,
            promoted=promoted,
            time_lock=time_lock,
        )

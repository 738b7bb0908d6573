"""Release engine configuration.

One TimeUnit is chosen here and threaded through every service and every
reconciler interval. Switching RELEASE_TIME_UNIT to ``minutes`` compresses
the whole engine uniformly: a 30-day inactivity period becomes 30 minutes,
and a scan interval of 1 unit becomes one minute.

Environment Variables:
- RELEASE_TIME_UNIT: ``days`` or ``minutes`` (default: days)
- INACTIVITY_SCAN_INTERVAL_UNITS: Inactivity monitor period (default: 1.0)
- GRACE_SCAN_INTERVAL_UNITS: Grace-period reconciler period (default: 1.0)
- TIME_LOCK_SCAN_INTERVAL_UNITS: Time-lock reconciler period (default: 0.0417)
- REMINDER_THRESHOLD_UNITS: Time-lock reminder window (default: 2.0)
- MAX_CAS_RETRIES: Refused writes in a row, with no newer version, before a
  transition gives up (default: 3, max: 20)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from lastkey.domain.models.time_unit import TimeUnit


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable, default if unset or invalid."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float environment variable, default if unset, invalid or <= 0."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _get_time_unit_env(key: str, default: TimeUnit) -> TimeUnit:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return TimeUnit.from_name(value)
    except ValueError:
        return default


DEFAULT_INACTIVITY_SCAN_INTERVAL_UNITS = 1.0
DEFAULT_GRACE_SCAN_INTERVAL_UNITS = 1.0
# About one hour when the unit is a day
DEFAULT_TIME_LOCK_SCAN_INTERVAL_UNITS = 0.0417
DEFAULT_REMINDER_THRESHOLD_UNITS = 2.0

DEFAULT_MAX_CAS_RETRIES = 3
MIN_CAS_RETRIES = 1
MAX_CAS_RETRIES = 20


@dataclass(frozen=True, eq=True)
class ReleaseEngineConfig:
    """Configuration for the release engine.

    Attributes:
        time_unit: Unit of every rule-set duration and scan interval.
        inactivity_scan_interval: Inactivity monitor period, in time units.
        grace_scan_interval: Grace-period reconciler period, in time units.
        time_lock_scan_interval: Time-lock reconciler period, in time units.
        reminder_threshold: Remaining countdown (in time units) below which
            reminders are sent.
        max_cas_retries: Version conflicts in a row where the release did not
            move on before ConcurrentModificationError surfaces. Conflicts
            against a newer version are retried without limit.
    """

    time_unit: TimeUnit = TimeUnit.DAYS
    inactivity_scan_interval: float = DEFAULT_INACTIVITY_SCAN_INTERVAL_UNITS
    grace_scan_interval: float = DEFAULT_GRACE_SCAN_INTERVAL_UNITS
    time_lock_scan_interval: float = DEFAULT_TIME_LOCK_SCAN_INTERVAL_UNITS
    reminder_threshold: float = DEFAULT_REMINDER_THRESHOLD_UNITS
    max_cas_retries: int = DEFAULT_MAX_CAS_RETRIES

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in (
            "inactivity_scan_interval",
            "grace_scan_interval",
            "time_lock_scan_interval",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.reminder_threshold < 0:
            raise ValueError(
                f"reminder_threshold cannot be negative, got {self.reminder_threshold}"
            )
        if not MIN_CAS_RETRIES <= self.max_cas_retries <= MAX_CAS_RETRIES:
            raise ValueError(
                f"max_cas_retries must be between {MIN_CAS_RETRIES} "
                f"and {MAX_CAS_RETRIES}, got {self.max_cas_retries}"
            )

    @property
    def inactivity_scan_seconds(self) -> float:
        return self.inactivity_scan_interval * self.time_unit.seconds

    @property
    def grace_scan_seconds(self) -> float:
        return self.grace_scan_interval * self.time_unit.seconds

    @property
    def time_lock_scan_seconds(self) -> float:
        return self.time_lock_scan_interval * self.time_unit.seconds

    @property
    def reminder_timedelta(self) -> timedelta:
        return self.time_unit.duration(self.reminder_threshold)

    @classmethod
    def from_environment(cls) -> ReleaseEngineConfig:
        """Create config from environment variables with defaults."""
        max_retries = _get_int_env("MAX_CAS_RETRIES", DEFAULT_MAX_CAS_RETRIES)
        # Clamp to valid range
        max_retries = max(MIN_CAS_RETRIES, min(max_retries, MAX_CAS_RETRIES))

        return cls(
            time_unit=_get_time_unit_env("RELEASE_TIME_UNIT", TimeUnit.DAYS),
            inactivity_scan_interval=_get_float_env(
                "INACTIVITY_SCAN_INTERVAL_UNITS",
                DEFAULT_INACTIVITY_SCAN_INTERVAL_UNITS,
            ),
            grace_scan_interval=_get_float_env(
                "GRACE_SCAN_INTERVAL_UNITS",
                DEFAULT_GRACE_SCAN_INTERVAL_UNITS,
            ),
            time_lock_scan_interval=_get_float_env(
                "TIME_LOCK_SCAN_INTERVAL_UNITS",
                DEFAULT_TIME_LOCK_SCAN_INTERVAL_UNITS,
            ),
            reminder_threshold=_get_float_env(
                "REMINDER_THRESHOLD_UNITS",
                DEFAULT_REMINDER_THRESHOLD_UNITS,
            ),
            max_cas_retries=max_retries,
        )

    def with_time_unit(self, time_unit: TimeUnit) -> ReleaseEngineConfig:
        """Same intervals, different unit."""
        return ReleaseEngineConfig(
            time_unit=time_unit,
            inactivity_scan_interval=self.inactivity_scan_interval,
            grace_scan_interval=self.grace_scan_interval,
            time_lock_scan_interval=self.time_lock_scan_interval,
            reminder_threshold=self.reminder_threshold,
            max_cas_retries=self.max_cas_retries,
        )


# Default production config: days
DEFAULT_RELEASE_ENGINE_CONFIG = ReleaseEngineConfig()

# Compressed config for tests and demos: every "day" is a minute
TEST_RELEASE_ENGINE_CONFIG = ReleaseEngineConfig(
    time_unit=TimeUnit.MINUTES,
    inactivity_scan_interval=1.0,
    grace_scan_interval=1.0,
    time_lock_scan_interval=0.5,
    reminder_threshold=DEFAULT_REMINDER_THRESHOLD_UNITS,
    max_cas_retries=DEFAULT_MAX_CAS_RETRIES,
)

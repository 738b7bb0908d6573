"""FakeTimeAuthority - controllable clock for release engine tests.

Every service reads time through TimeAuthorityProtocol, so tests freeze the
clock and step it across grace periods and time-locks explicitly:

    >>> clock = FakeTimeAuthority()
    >>> clock.advance(delta=TimeUnit.MINUTES.duration(3))
    >>> clock.advance_units(2, TimeUnit.MINUTES)

The monotonic clock moves with advance() only; set_time() jumps the wall
clock without touching it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from lastkey.application.ports.time_authority import TimeAuthorityProtocol
from lastkey.domain.models.time_unit import TimeUnit

DEFAULT_START = datetime(2026, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Frozen clock that only moves when told to.

    Attributes:
        _current_time: The controlled wall-clock time (UTC).
        _monotonic_base: Starting monotonic value.
        _monotonic_advances: Seconds accumulated by advance().
    """

    def __init__(
        self,
        frozen_at: datetime | None = None,
        *,
        start_monotonic: float = 0.0,
    ) -> None:
        """Initialize the fake clock.

        Args:
            frozen_at: Starting time, 2026-01-01T00:00:00Z when omitted.
                Naive datetimes are taken as UTC.
            start_monotonic: Starting monotonic value.
        """
        self._current_time: datetime = _aware(frozen_at or DEFAULT_START)
        self._monotonic_base: float = start_monotonic
        self._monotonic_advances: float = 0.0

    def now(self) -> datetime:
        return self._current_time

    def utcnow(self) -> datetime:
        return self._current_time

    def monotonic(self) -> float:
        return self._monotonic_base + self._monotonic_advances

    def advance(
        self,
        seconds: float | int | None = None,
        delta: timedelta | None = None,
    ) -> None:
        """Move the clock forward.

        Args:
            seconds: Seconds to advance.
            delta: Timedelta to advance, takes precedence over seconds.

        Raises:
            ValueError: If neither is given, or the amount is negative.
        """
        if delta is not None:
            advance_seconds = delta.total_seconds()
        elif seconds is not None:
            advance_seconds = float(seconds)
        else:
            raise ValueError("Must provide either 'seconds' or 'delta' argument")

        if advance_seconds < 0:
            raise ValueError(
                f"Cannot advance time backwards. Got {advance_seconds} seconds. "
                "Use set_time() for explicit time changes."
            )

        self._current_time += timedelta(seconds=advance_seconds)
        self._monotonic_advances += advance_seconds

    def advance_units(self, amount: float, time_unit: TimeUnit) -> None:
        """Advance by ``amount`` of the engine's time unit."""
        self.advance(delta=time_unit.duration(amount))

    def set_time(self, dt: datetime) -> None:
        """Jump the wall clock to ``dt``. The monotonic clock is unchanged."""
        self._current_time = _aware(dt)

    def reset(self, to: datetime | None = None, *, reset_monotonic: bool = True) -> None:
        self._current_time = _aware(to or DEFAULT_START)
        if reset_monotonic:
            self._monotonic_advances = 0.0

    @property
    def current_time(self) -> datetime:
        return self._current_time

    @property
    def elapsed_monotonic(self) -> float:
        return self._monotonic_advances

    def __repr__(self) -> str:
        return (
            f"FakeTimeAuthority("
            f"current_time={self._current_time.isoformat()}, "
            f"monotonic={self.monotonic():.3f})"
        )

"""Canonical time unit for every rule duration and scheduler interval.

Rule sets store durations as plain numbers. What a number means is decided
once, by the TimeUnit the engine is constructed with:

    DAYS     production scale, 1 unit = 1 day
    MINUTES  compressed scale for demos and end-to-end tests, 1 unit = 1 minute

The same TimeUnit instance is passed to every service and to the
reconciliation scheduler, so durations and polling intervals always agree.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum


class TimeUnit(Enum):
    """Unit in which rule set durations are expressed."""

    DAYS = "days"
    MINUTES = "minutes"

    @property
    def seconds(self) -> int:
        """Length of one unit in seconds."""
        return _UNIT_SECONDS[self]

    def duration(self, amount: float) -> timedelta:
        """Convert a number of units to a timedelta.

        Args:
            amount: Number of units (may be fractional, must be >= 0).

        Returns:
            The equivalent timedelta.

        Raises:
            ValueError: If amount is negative.
        """
        if amount < 0:
            raise ValueError(f"Duration cannot be negative, got {amount}")
        return timedelta(seconds=amount * self.seconds)

    def to_units(self, delta: timedelta) -> float:
        """Express a timedelta as a (possibly fractional) number of units."""
        return delta.total_seconds() / self.seconds

    def describe(self, amount: float) -> str:
        """Human readable description, e.g. ``"3 day(s)"``."""
        singular = "day" if self is TimeUnit.DAYS else "minute"
        if float(amount).is_integer():
            amount = int(amount)
        return f"{amount} {singular}(s)"

    @classmethod
    def from_name(cls, name: str) -> TimeUnit:
        """Parse a unit name, case-insensitively.

        Raises:
            ValueError: If the name is not a known unit.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(u.value for u in cls)
            raise ValueError(f"Unknown time unit {name!r}. Valid units: {valid}") from None


_UNIT_SECONDS: dict[TimeUnit, int] = {
    TimeUnit.DAYS: 24 * 60 * 60,
    TimeUnit.MINUTES: 60,
}

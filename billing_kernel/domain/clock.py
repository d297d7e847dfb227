"""
Clocks for stamping invoices and ledger entries.

Services take a ``Clock`` so that ``created_at`` and default entry dates
can be pinned in tests. Engines never read the time at all.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Clock time must be timezone-aware, got {value!r}")
    return value


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def today(self) -> date:
        """Calendar date of ``now()`` in the clock's own timezone."""
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in ``tz`` (UTC unless a business timezone is given)."""

    def __init__(self, tz: tzinfo = timezone.utc):
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class DeterministicClock(Clock):
    """Fixed clock for tests. It only moves through ``advance`` or ``set_time``."""

    DEFAULT_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, fixed_time: datetime | None = None):
        self._current = _require_aware(fixed_time or self.DEFAULT_TIME)

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = _require_aware(time)

    def advance(self, seconds: float = 1) -> datetime:
        """Move forward and return the new time."""
        self._current += timedelta(seconds=seconds)
        return self._current

"""
Injectable time source.

Services take a Clock instead of calling ``datetime.now()``.  Posting
timestamps, reversal dates, the stale-date check and the pending test for
recurring templates all read "now" from it, so a test can pin the ledger to
a given day.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta


class Clock(ABC):
    """Timezone-aware UTC time; ``today()`` is the date of ``now()``."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Fixed clock for tests.

    Defaults to noon UTC on 2024-01-01 and only moves when told to.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, tzinfo=UTC)

    def now(self) -> datetime:
        return self._current

    def set_time(self, value: datetime) -> None:
        self._current = value

    def set_date(self, value: date) -> None:
        """Move to noon UTC on ``value``."""
        self._current = datetime(value.year, value.month, value.day, 12, tzinfo=UTC)

    def advance(self, seconds: int = 0, days: int = 0) -> None:
        self._current += timedelta(days=days, seconds=seconds)

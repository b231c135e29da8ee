"""Day-granularity time sources for the lending engine."""

from collections.abc import Callable
from datetime import date, timedelta

# Any zero-argument callable returning today's date
Clock = Callable[[], date]


def system_clock() -> date:
    """Today's date according to the local wall clock."""
    return date.today()


class FixedClock:
    """
    A clock that always reports the same day until told otherwise.

    Used by tests and by tooling that replays lending operations on a
    known date.
    """

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1) -> date:
        """Move the clock forward and return the new date."""
        self.today = self.today + timedelta(days=days)
        return self.today

"""Clock used for every "today" comparison in the study core."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from bookclub.core.settings import settings


class Clock(Protocol):
    """Source of the current local date."""

    def today(self) -> date:
        ...


class SystemClock:
    """Wall clock in the configured local timezone."""

    def __init__(self, tz_name: Optional[str] = None):
        self.tz = ZoneInfo(tz_name or settings.timezone)

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a given date, for tests and replays."""

    def __init__(self, current: date):
        self.current = current

    def today(self) -> date:
        return self.current

    def advance(self, days: int = 1) -> None:
        self.current = self.current + timedelta(days=days)


# Shared read-only clock for the web process and the worker
system_clock = SystemClock()

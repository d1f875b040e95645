from __future__ import annotations
"""
Centralized window logic for session metrics.
One clock, one time zone: the same calendar day drives both the report
date ranges and the daily cache freshness check.
"""

from datetime import date, datetime, timedelta
from typing import NamedTuple
from zoneinfo import ZoneInfo

from sessions_radar.config.date_windows import (
    MONTHLY_WINDOW_DAYS,
    PREVIOUS_WINDOW_END_DAYS,
    PREVIOUS_WINDOW_START_DAYS,
)


class Clock:
    """Wall clock pinned to a single IANA time zone"""

    def __init__(self, tz_name: str = "UTC"):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def local_date(self, timestamp: float) -> date:
        """Calendar date of a POSIX timestamp (e.g. a file mtime) in this zone"""
        return datetime.fromtimestamp(timestamp, self.tz).date()


class FixedClock(Clock):
    """Clock frozen at a given instant. Naive instants are read in tz_name."""

    def __init__(self, instant: datetime, tz_name: str = "UTC"):
        super().__init__(tz_name)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=self.tz)
        self._instant = instant.astimezone(self.tz)

    def now(self) -> datetime:
        return self._instant


class DateRange(NamedTuple):
    start: str
    end: str


class DateWindows(NamedTuple):
    today: DateRange
    yesterday: DateRange
    monthly: DateRange
    previous_monthly: DateRange


def _iso(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def compute_date_windows(today: date) -> DateWindows:
    """
    Named report ranges as absolute YYYY-MM-DD dates.

    - today:            today .. today
    - yesterday:        today-1 .. today-1
    - monthly:          today-30 .. today
    - previous_monthly: today-60 .. today-30
    """
    yesterday = today - timedelta(days=1)
    return DateWindows(
        today=DateRange(_iso(today), _iso(today)),
        yesterday=DateRange(_iso(yesterday), _iso(yesterday)),
        monthly=DateRange(_iso(today - timedelta(days=MONTHLY_WINDOW_DAYS)), _iso(today)),
        previous_monthly=DateRange(
            _iso(today - timedelta(days=PREVIOUS_WINDOW_START_DAYS)),
            _iso(today - timedelta(days=PREVIOUS_WINDOW_END_DAYS)),
        ),
    )

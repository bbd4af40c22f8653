"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timedelta, timezone


def month_start(day: date) -> date:
    """First day of the calendar month containing day"""
    return day.replace(day=1)


def month_end(day: date) -> date:
    """Last day of the calendar month containing day (inclusive)"""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=last)


def add_months(day: date, months: int) -> date:
    """Shift to the first day of the month `months` away"""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


class SystemClock:
    """Wall-clock source of 'today'; only used for TTL and current fiscal year"""

    def today(self) -> date:
        return datetime.now(timezone.utc).date()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Clock pinned to a given instant, for tests and replays"""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self.instant = instant

    def today(self) -> date:
        return self.instant.date()

    def now(self) -> datetime:
        return self.instant

    def advance(self, seconds: float) -> None:
        self.instant = self.instant + timedelta(seconds=seconds)

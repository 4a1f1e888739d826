"""Explicit reporting windows."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from studio_finance.errors import ValidationFailedError


@dataclass(frozen=True)
class DateWindow:
    """Closed date interval [start, end]."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValidationFailedError(
                f"Window end {self.end} is before start {self.start}"
            )

    @property
    def lower(self) -> datetime:
        """Inclusive lower timestamp bound."""
        return datetime.combine(self.start, time.min)

    @property
    def upper(self) -> datetime:
        """Exclusive upper timestamp bound (midnight after end)."""
        return datetime.combine(self.end + timedelta(days=1), time.min)

    def contains(self, moment: datetime | date | None) -> bool:
        """Check if a timestamp or date falls inside the window."""
        if moment is None:
            return False
        if isinstance(moment, datetime):
            return self.lower <= moment < self.upper
        return self.start <= moment <= self.end

    def days(self) -> list[date]:
        """All calendar days in the window."""
        span = (self.end - self.start).days
        return [self.start + timedelta(days=offset) for offset in range(span + 1)]


def month_window(day: date) -> DateWindow:
    """Window covering the calendar month that contains ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return DateWindow(date(day.year, day.month, 1), date(day.year, day.month, last))


def parse_month(value: str) -> DateWindow:
    """Parse 'YYYY-MM' into a month window."""
    try:
        year, month = (int(part) for part in value.split("-", 1))
        return month_window(date(year, month, 1))
    except ValueError as exc:
        raise ValidationFailedError(f"Invalid month '{value}', expected YYYY-MM") from exc

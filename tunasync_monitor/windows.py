"""
Time windows for the access-log query.

Filebeat writes one index per day, named ``filebeat-YYYY.MM.DD``. A
TimeWindow turns a user-facing choice into the list of index names to
search:

    pattern  - a glob appended to the prefix, e.g. ``2020.01.*``
    month    - every day of one calendar month
    recent   - the last N days, ending today (local date)
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional


DEFAULT_INDEX_PREFIX = "filebeat-"


class WindowKind(Enum):
    PATTERN = "pattern"
    MONTH = "month"
    RECENT = "recent"


def daily_index(prefix: str, day: date) -> str:
    return f"{prefix}{day.year:04d}.{day.month:02d}.{day.day:02d}"


@dataclass(frozen=True)
class TimeWindow:
    """Which daily log indices a traffic query covers."""
    kind: WindowKind
    pattern: Optional[str] = None
    year: Optional[int] = None
    month: Optional[int] = None
    days: Optional[int] = None

    @classmethod
    def from_pattern(cls, pattern: str) -> 'TimeWindow':
        if not pattern:
            raise ValueError("pattern must not be empty")
        return cls(WindowKind.PATTERN, pattern=pattern)

    @classmethod
    def from_month(cls, year: int, month: int) -> 'TimeWindow':
        if not 1 <= month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {month}")
        if year < 1:
            raise ValueError(f"year must be positive, got {year}")
        return cls(WindowKind.MONTH, year=year, month=month)

    @classmethod
    def from_recent_days(cls, days: int) -> 'TimeWindow':
        if days < 1:
            raise ValueError(f"recent days must be at least 1, got {days}")
        return cls(WindowKind.RECENT, days=days)

    def index_names(self, prefix: str = DEFAULT_INDEX_PREFIX,
                    today: Optional[date] = None) -> List[str]:
        """
        Expand the window into index names.

        Args:
            prefix: Index name prefix
            today: Anchor for the recent window (defaults to the local date)
        """
        if self.kind is WindowKind.PATTERN:
            return [f"{prefix}{self.pattern}"]

        if self.kind is WindowKind.MONTH:
            _, days_in_month = calendar.monthrange(self.year, self.month)
            return [
                daily_index(prefix, date(self.year, self.month, d))
                for d in range(1, days_in_month + 1)
            ]

        if today is None:
            today = date.today()
        first = today - timedelta(days=self.days - 1)
        return [daily_index(prefix, first + timedelta(days=offset))
                for offset in range(self.days)]

    def describe(self, today: Optional[date] = None) -> str:
        """Short label for report headers."""
        if self.kind is WindowKind.PATTERN:
            return self.pattern
        if self.kind is WindowKind.MONTH:
            return f"{self.year}.{self.month}"
        if today is None:
            today = date.today()
        first = today - timedelta(days=self.days - 1)
        return f"last {self.days} days ({first.isoformat()} to {today.isoformat()})"

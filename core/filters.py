"""
Time window filtering and gap filling for the daily series.

A window is either "all time" or "the last N days, today included".
Finite windows are gap-filled so the chart x-axis is contiguous; the
all-time series is returned as-is.
"""
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from core.dates import parse_date
from core.models import DailyAggregate


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""
    start: date
    end: date

    def days(self) -> List[date]:
        """Every calendar day from start to end inclusive."""
        span = (self.end - self.start).days
        return [self.start + timedelta(days=offset) for offset in range(span + 1)]


@dataclass(frozen=True)
class WindowSpec:
    """
    Dashboard time window.

    `days` is None for the all-time window, otherwise the number of
    trailing days (>= 1) ending today.
    """
    days: Optional[int] = None

    @classmethod
    def all(cls) -> "WindowSpec":
        return cls(None)

    @classmethod
    def last_n_days(cls, n: int) -> "WindowSpec":
        if not isinstance(n, int) or isinstance(n, bool) or n < 1:
            raise ValueError(f"Window must cover at least one day, got {n!r}")
        return cls(n)

    @property
    def is_finite(self) -> bool:
        return self.days is not None

    @property
    def label(self) -> str:
        """Selector value: 'all' or e.g. '7d'."""
        return "all" if self.days is None else f"{self.days}d"

    def date_range(self, reference_date: Optional[date] = None) -> Optional[DateRange]:
        """Calendar range covered by a finite window (None for all time)."""
        if self.days is None:
            return None
        today = reference_date or date.today()
        return DateRange(today - timedelta(days=self.days - 1), today)


WINDOW_RE = re.compile(r"^(\d+)\s*d?$")


def parse_window(value: Optional[str]) -> WindowSpec:
    """
    Parse a time range selector value into a WindowSpec.

    Args:
        value: "all", "7", "7d", "30d", "90d", ... (None and "" mean all)

    Returns:
        WindowSpec

    Raises:
        ValueError: If value is not a recognised window

    Examples:
        >>> parse_window("30d")
        WindowSpec(days=30)

        >>> parse_window("all")
        WindowSpec(days=None)
    """
    if value is None:
        return WindowSpec.all()

    text = str(value).strip().lower()
    if text in ("", "all"):
        return WindowSpec.all()

    match = WINDOW_RE.match(text)
    if not match:
        raise ValueError(f"Unrecognised window {value!r}")
    return WindowSpec.last_n_days(int(match.group(1)))


def filter_window(
    aggregates: Sequence[DailyAggregate],
    window: WindowSpec,
    reference_date: Optional[date] = None,
) -> List[DailyAggregate]:
    """
    Restrict a daily series to a window.

    Entries whose date cannot be parsed are kept so that one bad record
    never empties the chart.

    Args:
        aggregates: Daily series (order is preserved)
        window: Window to apply
        reference_date: Day treated as today (default: date.today())

    Returns:
        Filtered series
    """
    date_range = window.date_range(reference_date)
    if date_range is None:
        return list(aggregates)

    kept = []
    for aggregate in aggregates:
        parsed = parse_date(aggregate.date)
        if parsed is None or parsed >= date_range.start:
            kept.append(aggregate)
    return kept


def fill_missing_days(
    aggregates: Sequence[DailyAggregate],
    n: int,
    reference_date: Optional[date] = None,
) -> List[DailyAggregate]:
    """
    Build a contiguous n-day series ending today.

    Each day is the matching aggregate when present, otherwise a
    zero-valued record. The result always has exactly n entries;
    aggregates outside the range (or with unparsable dates) do not appear.
    """
    date_range = WindowSpec.last_n_days(n).date_range(reference_date)

    by_day: Dict[date, DailyAggregate] = {}
    for aggregate in aggregates:
        parsed = parse_date(aggregate.date)
        if parsed is not None and parsed not in by_day:
            by_day[parsed] = aggregate

    return [
        by_day.get(day) or DailyAggregate.empty(day.isoformat())
        for day in date_range.days()
    ]

"""
Utility helpers for the detection analytics engine.

This module contains:
- PerformanceTimer: Timing utility for analysis passes
- Calendar helpers: day-of-year conversion and start-of-day
- Time-of-day bucketing used by the individual-bird estimator
- Guarded percentage change
"""

import logging
import time
import zoneinfo
from datetime import datetime, date, timedelta
from typing import Optional

logger = logging.getLogger(__name__)

MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')
WEEKDAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday',
                 'Thursday', 'Friday', 'Saturday')

# (bucket, start hour inclusive, end hour exclusive); anything else is night
TIME_OF_DAY_RANGES = (
    ('dawn', 5, 8),
    ('morning', 8, 12),
    ('afternoon', 12, 17),
    ('dusk', 17, 20),
)
NIGHT = 'night'


class PerformanceTimer:
    """Performance timing utility."""

    def __init__(self, operation_name="Operation", slow_threshold: float = 1.0):
        self.operation_name = operation_name
        self.slow_threshold = slow_threshold
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start timing."""
        self.start_time = time.perf_counter()
        return self

    def stop(self):
        """Stop timing and return duration."""
        if self.start_time is None:
            return 0.0

        self.end_time = time.perf_counter()
        return self.end_time - self.start_time

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        duration = self.stop()
        if duration > self.slow_threshold:  # Log slow operations
            logger.info(f"{self.operation_name} took {duration:.2f}s")


def to_local_naive(value: datetime, timezone: Optional[str] = None) -> datetime:
    """
    Convert a datetime to naive local wall-clock time.

    Naive values are assumed to already be local. Aware values are converted to
    ``timezone`` (an IANA name) or, when it is None, to the system local zone.
    """
    if value.tzinfo is None:
        return value
    if timezone:
        return value.astimezone(zoneinfo.ZoneInfo(timezone)).replace(tzinfo=None)
    return value.astimezone().replace(tzinfo=None)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def day_of_year(value) -> int:
    """Ordinal day within the year, 1..366."""
    return value.timetuple().tm_yday


def date_from_day_of_year(day: int, year: int) -> date:
    """
    Calendar date for a day-of-year in ``year``.

    Out-of-range days roll over into the neighbouring year (day 366 of a
    non-leap year is 1 January of the next).
    """
    return date(year, 1, 1) + timedelta(days=day - 1)


def format_day_of_year(day: int, year: int) -> str:
    target = date_from_day_of_year(day, year)
    return f"{MONTH_NAMES[target.month - 1]} {target.day}"


def sunday_weekday(value) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return (value.weekday() + 1) % 7


def time_of_day_bucket(hour: int) -> str:
    """Coarse time-of-day bucket for an hour 0..23."""
    for name, start, end in TIME_OF_DAY_RANGES:
        if start <= hour < end:
            return name
    return NIGHT


def format_hour(hour: int) -> str:
    """Format an hour as 12-hour clock text, e.g. 0 -> '12:00 AM'."""
    period = 'PM' if hour >= 12 else 'AM'
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:00 {period}"


def percent_change(current: float, baseline: float) -> Optional[float]:
    """
    Percentage change from baseline to current.

    Returns None when the baseline is zero ("no prior data") instead of an
    infinite or undefined change.
    """
    if not baseline:
        return None
    return (current - baseline) / baseline * 100.0

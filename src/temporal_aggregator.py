"""
Temporal aggregation of normalized detections.

Buckets detections into zero-filled day/hour/weekday/month histograms and
provides the period helpers (date-range filter, today and comparison stats,
trend statistics) the dashboard summaries are built from.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from exceptions import InvalidInputError
from models import (
    Detection, TemporalBucket, TemporalSummary, PeriodStats, ComparisonStats, TrendStats
)
from utils import MONTH_NAMES, WEEKDAY_NAMES, start_of_day, sunday_weekday, format_hour

logger = logging.getLogger(__name__)

DATE_RANGES = ("all", "today", "week", "month")
TREND_CHANGE_PERCENT = 15.0
TREND_SAMPLE_SIZE = 7


def _build_buckets(keys, labels, counts, species) -> tuple:
    return tuple(
        TemporalBucket(key=key, label=label, count=counts[key], unique_species=frozenset(species[key]))
        for key, label in zip(keys, labels)
    )


def daily_histogram(detections: Iterable[Detection], now: datetime,
                    window_days: int = 30) -> tuple:
    """
    Day buckets for the ``window_days`` calendar dates ending today.

    Detections outside the window are left out of this view only.
    """
    today = start_of_day(now).date()
    keys = [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]
    window = set(keys)
    counts = defaultdict(int)
    species = defaultdict(set)

    for detection in detections:
        day = detection.timestamp.date()
        if day in window:
            counts[day] += 1
            species[day].add(detection.species)

    labels = [f"{MONTH_NAMES[key.month - 1]} {key.day}" for key in keys]
    return _build_buckets(keys, labels, counts, species)


def hourly_histogram(detections: Iterable[Detection]) -> tuple:
    counts = defaultdict(int)
    species = defaultdict(set)
    for detection in detections:
        hour = detection.timestamp.hour
        counts[hour] += 1
        species[hour].add(detection.species)
    return _build_buckets(range(24), [format_hour(h) for h in range(24)], counts, species)


def weekday_histogram(detections: Iterable[Detection]) -> tuple:
    """Seven buckets, Sunday=0."""
    counts = defaultdict(int)
    species = defaultdict(set)
    for detection in detections:
        weekday = sunday_weekday(detection.timestamp)
        counts[weekday] += 1
        species[weekday].add(detection.species)
    return _build_buckets(range(7), WEEKDAY_NAMES, counts, species)


def monthly_histogram(detections: Iterable[Detection]) -> tuple:
    """Twelve calendar-month buckets (0=January), all years summed together."""
    counts = defaultdict(int)
    species = defaultdict(set)
    for detection in detections:
        month = detection.timestamp.month - 1
        counts[month] += 1
        species[month].add(detection.species)
    return _build_buckets(range(12), MONTH_NAMES, counts, species)


def aggregate(detections: Sequence[Detection], now: datetime, window_days: int = 30) -> TemporalSummary:
    """Build every temporal histogram for one analysis pass."""
    summary = TemporalSummary(
        days=daily_histogram(detections, now, window_days),
        hours=hourly_histogram(detections),
        weekdays=weekday_histogram(detections),
        months=monthly_histogram(detections),
    )
    logger.debug(f"Aggregated {len(detections)} detections into temporal buckets")
    return summary


def filter_by_date_range(detections: Iterable[Detection], date_range: str,
                         now: datetime) -> List[Detection]:
    """
    Restrict detections to a named range.

    Ranges: ``all``, ``today`` (since start of today), ``week`` (last 7 days)
    and ``month`` (last 30 days). Detections after ``now`` are kept.
    """
    if date_range not in DATE_RANGES:
        raise InvalidInputError(f"Unknown date range: {date_range!r} (expected one of {DATE_RANGES})")

    if date_range == "all":
        return list(detections)
    if date_range == "today":
        cutoff = start_of_day(now)
    elif date_range == "week":
        cutoff = now - timedelta(days=7)
    else:
        cutoff = now - timedelta(days=30)

    return [d for d in detections if d.timestamp >= cutoff]


def _period_stats(detections: Iterable[Detection], start: datetime,
                  end: Optional[datetime] = None) -> PeriodStats:
    selected = [d for d in detections
                if d.timestamp >= start and (end is None or d.timestamp < end)]
    return PeriodStats(detections=len(selected), species=len({d.species for d in selected}))


def today_stats(detections: Sequence[Detection], now: datetime) -> PeriodStats:
    return _period_stats(detections, start_of_day(now))


def recent_detections(detections: Iterable[Detection], limit: int = 50) -> List[Detection]:
    """Newest detections first, at most ``limit``."""
    ordered = sorted(detections, key=lambda d: (d.timestamp, d.species), reverse=True)
    return ordered[:limit]


def comparison_stats(detections: Sequence[Detection], now: datetime) -> ComparisonStats:
    """Today vs yesterday and this week vs last week, plus all-time totals."""
    today_start = start_of_day(now)
    yesterday_start = today_start - timedelta(days=1)
    week_start = now - timedelta(days=7)
    last_week_start = now - timedelta(days=14)

    return ComparisonStats(
        today=_period_stats(detections, today_start),
        yesterday=_period_stats(detections, yesterday_start, today_start),
        this_week=_period_stats(detections, week_start),
        last_week=_period_stats(detections, last_week_start, week_start),
        all_time=PeriodStats(detections=len(detections),
                             species=len({d.species for d in detections})),
    )


def trend_stats(values: Sequence[float]) -> TrendStats:
    """
    Summary and direction of a series (oldest value first).

    The trend compares the mean of the last seven values against the mean of
    the first seven; a change beyond 15% either way is a trend.
    """
    values = list(values)
    if not values:
        return TrendStats(peak=0, average=0.0, total=0, trend="Stable")

    total = sum(values)
    recent = values[-TREND_SAMPLE_SIZE:]
    older = values[:TREND_SAMPLE_SIZE]
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    change = (recent_avg - older_avg) / (older_avg or 1) * 100

    if change > TREND_CHANGE_PERCENT:
        trend = "Increasing"
    elif change < -TREND_CHANGE_PERCENT:
        trend = "Decreasing"
    else:
        trend = "Stable"

    return TrendStats(
        peak=max(values),
        average=round(total / len(values), 1),
        total=total,
        trend=trend,
    )

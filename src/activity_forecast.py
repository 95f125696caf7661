"""
Activity forecasting from detection history.

- Peak activity per upcoming day from weekday x hour history
- Species pairs that are heard in the same hour
- Next expected detection per species from inter-detection intervals
- Side-by-side hourly activity comparison of selected species
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from models import (
    Detection, PeakActivityForecast, CoOccurrence, NextDetectionForecast, PeakHour,
    SpeciesActivity, ActivityOverlap, SpeciesComparison
)
from utils import WEEKDAY_NAMES, start_of_day, sunday_weekday, format_hour

logger = logging.getLogger(__name__)

SEPARATED_OVERLAP_PERCENT = 30.0


def _group_by_species(detections: Sequence[Detection]) -> Dict[str, List[Detection]]:
    grouped = defaultdict(list)
    for detection in detections:
        grouped[detection.species].append(detection)
    return grouped


def _activity_confidence(total: int) -> str:
    if total > 20:
        return 'high'
    if total > 10:
        return 'medium'
    return 'low'


def predict_peak_activity(detections: Sequence[Detection], now: datetime,
                          days: int = 7) -> List[PeakActivityForecast]:
    """Predicted peak hour for each of the next ``days`` days, today first."""
    if not detections:
        return []

    patterns = defaultdict(int)
    for detection in detections:
        patterns[(sunday_weekday(detection.timestamp), detection.timestamp.hour)] += 1

    forecasts = []
    today = start_of_day(now)
    for offset in range(days):
        day = today + timedelta(days=offset)
        weekday = sunday_weekday(day)
        hourly = [patterns[(weekday, hour)] for hour in range(24)]
        total = sum(hourly)
        peak_count = max(hourly)
        # Earliest hour wins ties; no history falls back to midnight
        peak_hour = hourly.index(peak_count) if peak_count > 0 else 0

        forecasts.append(PeakActivityForecast(
            day=day.date(),
            day_name=WEEKDAY_NAMES[weekday],
            peak_hour=peak_hour,
            time_range=f"{peak_hour:02d}:00 - {(peak_hour + 1) % 24:02d}:00",
            expected_activity=round(total / 24),
            peak_activity=peak_count,
            confidence=_activity_confidence(total),
            is_today=offset == 0,
        ))

    return forecasts


def co_occurrence(detections: Sequence[Detection], min_support: int = 3) -> List[CoOccurrence]:
    """Species pairs heard within the same calendar hour at least ``min_support`` times."""
    windows = defaultdict(set)
    for detection in detections:
        ts = detection.timestamp
        windows[(ts.year, ts.month, ts.day, ts.hour)].add(detection.species)

    pair_counts = defaultdict(int)
    for species in windows.values():
        for pair in combinations(sorted(species), 2):
            pair_counts[pair] += 1

    pairs = [CoOccurrence(species1=a, species2=b, count=count)
             for (a, b), count in pair_counts.items() if count >= min_support]
    pairs.sort(key=lambda p: (-p.count, p.species1, p.species2))
    return pairs


def interval_statistics(timestamps: Sequence[datetime]) -> Tuple[float, float, float]:
    """
    Mean and population standard deviation of gaps between sorted timestamps, in hours.

    Returns (mean, std, coefficient of variation). A zero mean gives an
    infinite coefficient unless the gaps are all zero.
    """
    ordered = sorted(timestamps)
    gaps = np.diff(np.array([t.timestamp() for t in ordered], dtype=float)) / 3600.0
    mean = float(np.mean(gaps))
    std = float(np.std(gaps))
    if mean > 0:
        cv = std / mean
    else:
        cv = 0.0 if std == 0 else float('inf')
    return mean, std, cv


def _interval_confidence(cv: float, count: int) -> str:
    if cv < 0.5 and count >= 10:
        return 'high'
    if cv < 1.0 and count >= 5:
        return 'medium'
    return 'low'


def _next_detection_message(hours_until: float) -> str:
    if hours_until < 0:
        return "Overdue (check soon!)"
    if hours_until < 1:
        return "Expected within the hour"
    if hours_until < 24:
        return f"Expected in {round(hours_until)} hours"
    return f"Expected in {round(hours_until / 24)} days"


def predict_next_detections(detections: Sequence[Detection],
                            now: datetime) -> List[NextDetectionForecast]:
    """
    Next expected detection for every species with at least two detections.

    Sorted by next expected time (then species name).
    """
    forecasts = []
    for species, items in _group_by_species(detections).items():
        if len(items) < 2:
            continue

        timestamps = sorted(d.timestamp for d in items)
        mean, std, cv = interval_statistics(timestamps)
        last_seen = timestamps[-1]
        next_expected = last_seen + timedelta(hours=mean)
        hours_until = (next_expected - now).total_seconds() / 3600.0

        forecasts.append(NextDetectionForecast(
            species=species,
            last_seen=last_seen,
            detection_count=len(items),
            avg_interval_hours=mean,
            std_interval_hours=std,
            next_expected=next_expected,
            hours_until_next=hours_until,
            confidence=_interval_confidence(cv, len(items)),
            message=_next_detection_message(hours_until),
        ))

    forecasts.sort(key=lambda f: (f.next_expected, f.species))
    return forecasts


def _species_activity(name: str, items: Sequence[Detection]) -> SpeciesActivity:
    hourly = [0] * 24
    for detection in items:
        hourly[detection.timestamp.hour] += 1

    ranked = sorted(range(24), key=lambda h: (-hourly[h], h))[:3]
    peaks = tuple(PeakHour(hour=h, count=hourly[h], label=format_hour(h))
                  for h in ranked if hourly[h] > 0)

    if not items:
        return SpeciesActivity(name=name, count=0, hourly_pattern=tuple(hourly), peak_hours=(),
                               avg_confidence=0.0, first_seen=None, last_seen=None)

    timestamps = [d.timestamp for d in items]
    return SpeciesActivity(
        name=name,
        count=len(items),
        hourly_pattern=tuple(hourly),
        peak_hours=peaks,
        avg_confidence=sum(d.confidence for d in items) / len(items),
        first_seen=min(timestamps),
        last_seen=max(timestamps),
    )


def _activity_overlap(first: SpeciesActivity, second: SpeciesActivity) -> ActivityOverlap:
    overlap_hours = 0
    active_hours = 0
    for a, b in zip(first.hourly_pattern, second.hourly_pattern):
        if a > 0 and b > 0:
            overlap_hours += 1
        if a > 0 or b > 0:
            active_hours += 1

    percentage = round(overlap_hours / active_hours * 100, 1) if active_hours else 0.0
    return ActivityOverlap(species1=first.name, species2=second.name,
                           overlap_percentage=percentage,
                           overlap_hours=overlap_hours, total_hours=active_hours)


def _comparison_summary(activities, overlaps) -> Tuple[str, ...]:
    summary = []
    most_active = min(activities, key=lambda a: (-a.count, a.name))
    summary.append(f"{most_active.name} is most active with {most_active.count} detections")

    if overlaps:
        highest = max(overlaps, key=lambda o: o.overlap_percentage)
        summary.append(f"{highest.species1} and {highest.species2} overlap "
                       f"{highest.overlap_percentage:.1f}% of the time")
        lowest = min(overlaps, key=lambda o: o.overlap_percentage)
        if lowest.overlap_percentage < SEPARATED_OVERLAP_PERCENT:
            summary.append(f"{lowest.species1} and {lowest.species2} prefer different times "
                           f"({lowest.overlap_percentage:.1f}% overlap)")

    return tuple(summary)


def compare_species(names: Sequence[str],
                    detections: Sequence[Detection]) -> Optional[SpeciesComparison]:
    """Compare hourly activity of two or more species; fewer than two names gives None."""
    if not names or len(names) < 2:
        return None

    grouped = _group_by_species(detections)
    activities = [_species_activity(name, grouped.get(name, [])) for name in names]
    overlaps = tuple(_activity_overlap(a, b) for a, b in combinations(activities, 2))

    return SpeciesComparison(
        species=tuple(activities),
        overlaps=overlaps,
        summary=_comparison_summary(activities, overlaps),
    )

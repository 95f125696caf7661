"""
Seasonal migration pattern classification and arrival/departure prediction.

Each species gets a 12-bin monthly presence histogram (all years summed). The
pattern is the first rule that matches:

1. present in 10 or more months -> Resident
2. more than 60% of detections in May-Aug -> Summer
3. more than 60% of detections in Nov-Feb -> Winter
4. otherwise -> Transient

Predictions compare today's day-of-year against the species' historical
earliest and latest day-of-year.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from models import (
    Detection, MigrationPattern, PredictionStatus, ConfidenceLevel, MovementClass, MigrationPrediction,
    MigrationProfile
)
from utils import day_of_year, date_from_day_of_year, format_day_of_year

logger = logging.getLogger(__name__)

RESIDENT_MIN_MONTHS = 10
SEASONAL_SHARE = 0.6
SUMMER_MONTHS = (4, 5, 6, 7)          # May..Aug, zero-based
WINTER_MONTHS = (10, 11, 0, 1)        # Nov..Feb, zero-based

WINTER_START_DAY = 305                # ~Nov 1
WINTER_END_DAY = 75                   # ~Mar 15
WINTER_GAP_MIDPOINT = 190             # splits the Mar 16..Oct 31 gap into departed/expected

PASSAGE_WINDOW_DAYS = 30


def monthly_presence(detections: Iterable[Detection]) -> Tuple[int, ...]:
    months = [0] * 12
    for detection in detections:
        months[detection.timestamp.month - 1] += 1
    return tuple(months)


def classify_pattern(months: Sequence[int]) -> MigrationPattern:
    """Classify a 12-bin monthly histogram; an empty histogram is Transient."""
    present = sum(1 for count in months if count > 0)
    total = sum(months)

    if present >= RESIDENT_MIN_MONTHS:
        return MigrationPattern.RESIDENT
    if total == 0:
        return MigrationPattern.TRANSIENT
    if sum(months[m] for m in SUMMER_MONTHS) / total > SEASONAL_SHARE:
        return MigrationPattern.SUMMER
    if sum(months[m] for m in WINTER_MONTHS) / total > SEASONAL_SHARE:
        return MigrationPattern.WINTER
    return MigrationPattern.TRANSIENT


def confidence_level(years: int, detection_count: int) -> ConfidenceLevel:
    if years >= 3 and detection_count >= 20:
        return ConfidenceLevel.HIGH
    if years >= 2 and detection_count >= 10:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def _summer_prediction(today: date, min_day: int, max_day: int) -> MigrationPrediction:
    current = day_of_year(today)
    year = today.year

    if min_day <= current <= max_day:
        return MigrationPrediction(
            PredictionStatus.PRESENT,
            f"Expected until ~{format_day_of_year(max_day, year)}",
            date_from_day_of_year(max_day, year),
        )
    if current < min_day:
        return MigrationPrediction(
            PredictionStatus.EXPECTED,
            f"Expected to arrive ~{format_day_of_year(min_day, year)}",
            date_from_day_of_year(min_day, year),
        )
    return MigrationPrediction(
        PredictionStatus.DEPARTED,
        f"Departed; expected back ~{format_day_of_year(min_day, year + 1)}",
        date_from_day_of_year(min_day, year + 1),
    )


def _winter_prediction(today: date) -> MigrationPrediction:
    current = day_of_year(today)
    year = today.year

    if current >= WINTER_START_DAY or current <= WINTER_END_DAY:
        end_year = year + 1 if current >= WINTER_START_DAY else year
        return MigrationPrediction(
            PredictionStatus.PRESENT,
            f"Expected until ~{format_day_of_year(WINTER_END_DAY, end_year)}",
            date_from_day_of_year(WINTER_END_DAY, end_year),
        )

    arrival = date_from_day_of_year(WINTER_START_DAY, year)
    arrival_text = format_day_of_year(WINTER_START_DAY, year)
    if current <= WINTER_GAP_MIDPOINT:
        return MigrationPrediction(PredictionStatus.DEPARTED,
                                   f"Departed; expected back ~{arrival_text}", arrival)
    return MigrationPrediction(PredictionStatus.EXPECTED,
                               f"Expected to arrive ~{arrival_text}", arrival)


def _transient_prediction(today: date, min_day: int, max_day: int) -> MigrationPrediction:
    current = day_of_year(today)
    year = today.year

    if abs(current - min_day) <= PASSAGE_WINDOW_DAYS:
        return MigrationPrediction(PredictionStatus.MIGRATING,
                                   "Spring migration in progress", today)
    if abs(current - max_day) <= PASSAGE_WINDOW_DAYS:
        return MigrationPrediction(PredictionStatus.MIGRATING,
                                   "Fall migration in progress", today)
    if current < min_day:
        return MigrationPrediction(
            PredictionStatus.EXPECTED,
            f"Spring passage expected ~{format_day_of_year(min_day, year)}",
            date_from_day_of_year(min_day, year),
        )
    if current > max_day:
        return MigrationPrediction(
            PredictionStatus.DEPARTED,
            f"Passed through; next spring passage ~{format_day_of_year(min_day, year + 1)}",
            date_from_day_of_year(min_day, year + 1),
        )
    # Between the two passages: the fall passage is still to come this year
    return MigrationPrediction(
        PredictionStatus.EXPECTED,
        f"Fall passage expected ~{format_day_of_year(max_day, year)}",
        date_from_day_of_year(max_day, year),
    )


def predict_transition(pattern: MigrationPattern, today: date,
                       min_day: int, max_day: int) -> MigrationPrediction:
    """Predict the next arrival/departure for a classified species."""
    if pattern == MigrationPattern.RESIDENT:
        return MigrationPrediction(PredictionStatus.PRESENT, "Expected year-round")
    if pattern == MigrationPattern.SUMMER:
        return _summer_prediction(today, min_day, max_day)
    if pattern == MigrationPattern.WINTER:
        return _winter_prediction(today)
    return _transient_prediction(today, min_day, max_day)


def build_profile(species: str, detections: Sequence[Detection], today: date,
                  catalog=None) -> MigrationProfile:
    months = monthly_presence(detections)
    pattern = classify_pattern(months)
    days = [day_of_year(d.timestamp) for d in detections]
    timestamps = [d.timestamp for d in detections]
    years = {t.year for t in timestamps}

    movement = catalog.movement_for(species) if catalog is not None else MovementClass.UNKNOWN

    return MigrationProfile(
        species=species,
        pattern_type=pattern,
        monthly_presence=months,
        first_seen=min(timestamps),
        last_seen=max(timestamps),
        detection_count=len(detections),
        prediction=predict_transition(pattern, today, min(days), max(days)),
        confidence_level=confidence_level(len(years), len(detections)),
        movement=movement,
    )


def _profile_sort_key(profile: MigrationProfile):
    next_date = profile.prediction.next_date
    return (next_date is None, next_date or date.min, profile.species)


def analyze_migration(detections: Iterable[Detection], now: datetime,
                      catalog=None) -> Tuple[MigrationProfile, ...]:
    """
    Build a migration profile for every species.

    Profiles are ordered by next predicted transition date; species without
    one (residents) come last. Ties are broken by species name.
    """
    by_species: Dict[str, List[Detection]] = defaultdict(list)
    for detection in detections:
        by_species[detection.species].append(detection)

    today = now.date()
    profiles = [build_profile(species, items, today, catalog)
                for species, items in by_species.items()]
    profiles.sort(key=_profile_sort_key)

    logger.debug(f"Built {len(profiles)} migration profiles")
    return tuple(profiles)


def upcoming_transitions(profiles: Iterable[MigrationProfile], today: date,
                         days: int = 30) -> List[MigrationProfile]:
    """Profiles currently migrating or expected to arrive within ``days``."""
    upcoming = []
    for profile in profiles:
        prediction = profile.prediction
        if prediction.status == PredictionStatus.MIGRATING:
            upcoming.append(profile)
        elif (prediction.status == PredictionStatus.EXPECTED and prediction.next_date is not None
              and 0 <= (prediction.next_date - today).days <= days):
            upcoming.append(profile)
    return upcoming

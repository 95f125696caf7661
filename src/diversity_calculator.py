"""
Community diversity and per-species rarity metrics.

Diversity indices are computed over species detection frequencies
``p_i = count_i / N``:

- Shannon ``H = -sum(p_i * ln p_i)``
- Simpson ``D = 1 - sum(p_i ** 2)``
- Evenness ``H / ln(S)`` (0 when richness S <= 1)

Rarity scores place each species on a 0-100 scale relative to the most
detected species, on a log scale so that the long tail of scarce species
stays distinguishable.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

import numpy as np

from exceptions import InvalidInputError
from models import (
    Detection, SpeciesStat, MetricValue, DiversityMetrics, RarityTier, RarityScore,
    DiversityTrendPoint
)
from utils import MONTH_NAMES, start_of_day

logger = logging.getLogger(__name__)

NO_DATA = "No data"

# (lower bound exclusive, interpretation), checked top-down
SHANNON_THRESHOLDS = (
    (3.5, "Very high diversity"),
    (3.0, "High diversity"),
    (2.0, "Moderate diversity"),
    (1.0, "Low diversity"),
    (0.0, "Very low diversity"),
)
SHANNON_NONE = "No diversity"

SIMPSON_THRESHOLDS = (
    (0.8, "High diversity"),
    (0.5, "Moderate diversity"),
)
SIMPSON_LOW = "Low diversity"

EVENNESS_THRESHOLDS = (
    (0.8, "Very even"),
    (0.6, "Moderately even"),
    (0.4, "Somewhat uneven"),
)
EVENNESS_LOW = "Very uneven"

# Minimum score for each tier above Rare
UNCOMMON_MIN_SCORE = 50
COMMON_MIN_SCORE = 20

TREND_PERIODS = ("daily", "weekly", "monthly")


def _interpret(value: float, thresholds, fallback: str) -> str:
    for bound, label in thresholds:
        if value > bound:
            return label
    return fallback


def _proportions(counts: Sequence[int]) -> np.ndarray:
    values = np.asarray([c for c in counts if c > 0], dtype=float)
    return values / values.sum()


def shannon_index(counts: Sequence[int]) -> float:
    if sum(counts) == 0:
        return 0.0
    p = _proportions(counts)
    return max(0.0, float(-np.sum(p * np.log(p))))


def simpson_index(counts: Sequence[int]) -> float:
    if sum(counts) == 0:
        return 0.0
    p = _proportions(counts)
    return max(0.0, float(1.0 - np.sum(p * p)))


def evenness(shannon: float, richness: int) -> float:
    if richness <= 1:
        return 0.0
    return shannon / math.log(richness)


def calculate_diversity(stats: Sequence[SpeciesStat]) -> DiversityMetrics:
    """Shannon, Simpson and evenness with interpretations; empty input yields zeros."""
    counts = [s.count for s in stats if s.count > 0]
    total = sum(counts)
    richness = len(counts)

    if total == 0:
        zero = MetricValue(0.0, NO_DATA)
        return DiversityMetrics(shannon=zero, simpson=zero, evenness=zero,
                                richness=0, total_detections=0)

    shannon = shannon_index(counts)
    simpson = simpson_index(counts)
    even = evenness(shannon, richness)

    return DiversityMetrics(
        shannon=MetricValue(shannon, _interpret(shannon, SHANNON_THRESHOLDS, SHANNON_NONE)),
        simpson=MetricValue(simpson, _interpret(simpson, SIMPSON_THRESHOLDS, SIMPSON_LOW)),
        evenness=MetricValue(
            even,
            _interpret(even, EVENNESS_THRESHOLDS, EVENNESS_LOW) if richness > 1 else NO_DATA,
        ),
        richness=richness,
        total_detections=total,
    )


def rarity_score(count: int, max_count: int) -> int:
    """0 for the most detected species up to 100 for a single detection."""
    if max_count <= 1 or count <= 1:
        return 100
    score = round(100 * (1 - math.log(count) / math.log(max_count)))
    return min(100, max(0, score))


def rarity_tier(count: int, score: int, rare_threshold: int = 3) -> RarityTier:
    if count <= rare_threshold:
        return RarityTier.RARE
    if score >= UNCOMMON_MIN_SCORE:
        return RarityTier.UNCOMMON
    if score >= COMMON_MIN_SCORE:
        return RarityTier.COMMON
    return RarityTier.ABUNDANT


def calculate_rarity(stats: Sequence[SpeciesStat], rare_threshold: int = 3) -> Tuple[RarityScore, ...]:
    """Rarity score and tier per species, rarest first."""
    if not stats:
        return ()

    max_count = max(s.count for s in stats)
    scores = []
    for stat in stats:
        score = rarity_score(stat.count, max_count)
        scores.append(RarityScore(species=stat.name, count=stat.count, score=score,
                                  tier=rarity_tier(stat.count, score, rare_threshold)))

    scores.sort(key=lambda r: (-r.score, r.species))
    return tuple(scores)


def _period_bounds(period: str, index: int, now: datetime):
    today = start_of_day(now)
    if period == "daily":
        start = today - timedelta(days=index)
        return start, start + timedelta(days=1), f"{MONTH_NAMES[start.month - 1]} {start.day}"
    if period == "weekly":
        end = today + timedelta(days=1) - timedelta(days=7 * index)
        start = end - timedelta(days=7)
        return start, end, f"Week of {MONTH_NAMES[start.month - 1]} {start.day}"

    month_index = today.year * 12 + (today.month - 1) - index
    start = today.replace(year=month_index // 12, month=month_index % 12 + 1, day=1)
    next_index = month_index + 1
    end = start.replace(year=next_index // 12, month=next_index % 12 + 1)
    return start, end, f"{MONTH_NAMES[start.month - 1]} {start.year}"


def diversity_trends(detections: Sequence[Detection], period: str = "weekly",
                     periods: int = 8, now: datetime = None) -> List[DiversityTrendPoint]:
    """
    Diversity indices per period for the last ``periods`` periods, oldest first.

    Args:
        detections: Normalized detections
        period: One of "daily", "weekly" or "monthly"
        periods: Number of periods ending with the current one
        now: Reference time (defaults to the current time)
    """
    if period not in TREND_PERIODS:
        raise InvalidInputError(f"Unknown diversity trend period: {period!r}")
    if not detections:
        return []

    now = now or datetime.now()
    points = []
    for index in range(periods - 1, -1, -1):
        start, end, label = _period_bounds(period, index, now)
        counts = {}
        for detection in detections:
            if start <= detection.timestamp < end:
                counts[detection.species] = counts.get(detection.species, 0) + 1

        values = list(counts.values())
        points.append(DiversityTrendPoint(
            period_start=start,
            label=label,
            shannon=round(shannon_index(values), 2),
            simpson=round(simpson_index(values), 2),
            richness=len(values),
            detections=sum(values),
        ))

    return points

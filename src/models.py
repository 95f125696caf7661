"""
Consolidated data models for the detection analytics engine.

This module contains all result types produced by the engine for:
- Normalized detections
- Temporal and species aggregates
- Diversity, rarity and migration inference
- Individual estimates, insights and alerts

Every model is a frozen dataclass holding tuples/frozensets so that a result
handed to a caller can never be mutated by another component.
"""

from dataclasses import dataclass
from datetime import datetime, date
from enum import Enum
from typing import Optional, Tuple, FrozenSet, Any


# =============================================================================
# Detection Models
# =============================================================================

@dataclass(frozen=True)
class Detection:
    """One timestamped, confidence-scored species observation (local wall-clock time)."""
    species: str
    timestamp: datetime
    confidence: float = 0.0


# =============================================================================
# Temporal Aggregation Models
# =============================================================================

@dataclass(frozen=True)
class TemporalBucket:
    """One histogram bin with its detection count and distinct species."""
    key: Any  # date for day buckets, int for hour/weekday/month buckets
    label: str
    count: int = 0
    unique_species: FrozenSet[str] = frozenset()

    @property
    def species_count(self) -> int:
        return len(self.unique_species)


@dataclass(frozen=True)
class TemporalSummary:
    """Day/hour/weekday/month histograms for one analysis pass."""
    days: Tuple[TemporalBucket, ...]
    hours: Tuple[TemporalBucket, ...]
    weekdays: Tuple[TemporalBucket, ...]
    months: Tuple[TemporalBucket, ...]


@dataclass(frozen=True)
class PeriodStats:
    detections: int = 0
    species: int = 0


@dataclass(frozen=True)
class ComparisonStats:
    """Today vs yesterday and this week vs last week."""
    today: PeriodStats
    yesterday: PeriodStats
    this_week: PeriodStats
    last_week: PeriodStats
    all_time: PeriodStats


@dataclass(frozen=True)
class TrendStats:
    peak: int
    average: float
    total: int
    trend: str


# =============================================================================
# Species Models
# =============================================================================

@dataclass(frozen=True)
class SpeciesStat:
    """Per-species detection statistics."""
    name: str
    count: int
    avg_confidence: float
    first_seen: datetime
    last_seen: datetime


@dataclass(frozen=True)
class SpeciesShare:
    name: str
    count: int
    percentage: float


# =============================================================================
# Diversity & Rarity Models
# =============================================================================

@dataclass(frozen=True)
class MetricValue:
    """A numeric metric with its qualitative interpretation."""
    value: float
    interpretation: str


@dataclass(frozen=True)
class DiversityMetrics:
    shannon: MetricValue
    simpson: MetricValue
    evenness: MetricValue
    richness: int
    total_detections: int


class RarityTier(str, Enum):
    RARE = "Rare"
    UNCOMMON = "Uncommon"
    COMMON = "Common"
    ABUNDANT = "Abundant"


@dataclass(frozen=True)
class RarityScore:
    species: str
    count: int
    score: int  # 0 (most common) .. 100 (rarest)
    tier: RarityTier


@dataclass(frozen=True)
class DiversityTrendPoint:
    period_start: datetime
    label: str
    shannon: float
    simpson: float
    richness: int
    detections: int


# =============================================================================
# Migration Models
# =============================================================================

class MigrationPattern(str, Enum):
    RESIDENT = "Resident"
    SUMMER = "Summer"
    WINTER = "Winter"
    TRANSIENT = "Transient"


class PredictionStatus(str, Enum):
    PRESENT = "present"
    EXPECTED = "expected"
    DEPARTED = "departed"
    MIGRATING = "migrating"


class ConfidenceLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class MovementClass(str, Enum):
    MIGRATORY = "Migratory"
    PARTIAL = "Partial"
    RESIDENT = "Resident"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class MigrationPrediction:
    status: PredictionStatus
    message: str
    next_date: Optional[date] = None


@dataclass(frozen=True)
class MigrationProfile:
    """Seasonal occurrence profile for one species."""
    species: str
    pattern_type: MigrationPattern
    monthly_presence: Tuple[int, ...]
    first_seen: datetime
    last_seen: datetime
    detection_count: int
    prediction: MigrationPrediction
    confidence_level: ConfidenceLevel
    movement: MovementClass = MovementClass.UNKNOWN


@dataclass(frozen=True)
class LateArrival:
    species: str
    expected_date: date
    days_late: int


# =============================================================================
# Individual Estimation Models
# =============================================================================

@dataclass(frozen=True)
class IndividualEstimate:
    """Estimated number of distinct individuals for one species."""
    species: str
    cluster_count: int
    detection_count: int
    avg_cluster_size: float
    clusters: Tuple[Tuple[Detection, ...], ...] = ()


# =============================================================================
# Forecast Models
# =============================================================================

@dataclass(frozen=True)
class PeakActivityForecast:
    day: date
    day_name: str
    peak_hour: int
    time_range: str
    expected_activity: int
    peak_activity: int
    confidence: str
    is_today: bool


@dataclass(frozen=True)
class CoOccurrence:
    species1: str
    species2: str
    count: int


@dataclass(frozen=True)
class NextDetectionForecast:
    species: str
    last_seen: datetime
    detection_count: int
    avg_interval_hours: float
    std_interval_hours: float
    next_expected: datetime
    hours_until_next: float
    confidence: str
    message: str

    @property
    def is_overdue(self) -> bool:
        return self.hours_until_next < 0


@dataclass(frozen=True)
class PeakHour:
    hour: int
    count: int
    label: str


@dataclass(frozen=True)
class SpeciesActivity:
    name: str
    count: int
    hourly_pattern: Tuple[int, ...]
    peak_hours: Tuple[PeakHour, ...]
    avg_confidence: float
    first_seen: Optional[datetime]
    last_seen: Optional[datetime]


@dataclass(frozen=True)
class ActivityOverlap:
    species1: str
    species2: str
    overlap_percentage: float
    overlap_hours: int
    total_hours: int


@dataclass(frozen=True)
class SpeciesComparison:
    species: Tuple[SpeciesActivity, ...]
    overlaps: Tuple[ActivityOverlap, ...]
    summary: Tuple[str, ...]


@dataclass(frozen=True)
class ForecastReport:
    """Forward-looking views over the full detection history."""
    generated_at: datetime
    peak_activity: Tuple[PeakActivityForecast, ...]
    next_detections: Tuple[NextDetectionForecast, ...]
    co_occurrences: Tuple[CoOccurrence, ...]
    late_arrivals: Tuple[LateArrival, ...]
    migrants: Tuple[str, ...]


# =============================================================================
# Insight & Alert Models
# =============================================================================

@dataclass(frozen=True)
class Insight:
    kind: str
    icon: str
    title: str
    text: str
    rank: int = 0


class AlertKind(str, Enum):
    WATCHED = "watched"
    NEW = "new"
    RARE = "rare"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class Alert:
    kind: AlertKind
    species: str
    title: str
    message: str
    detected_at: datetime
    key: str


@dataclass(frozen=True)
class AlertResult:
    """Alerts raised by one check plus the caller's updated notified-key set."""
    alerts: Tuple[Alert, ...] = ()
    notified: FrozenSet[str] = frozenset()


# =============================================================================
# Report Model
# =============================================================================

@dataclass(frozen=True)
class AnalyticsReport:
    """Everything one analysis pass produces for the presentation layer."""
    generated_at: datetime
    date_range: str
    total_detections: int
    total_species: int
    temporal: TemporalSummary
    species_stats: Tuple[SpeciesStat, ...]
    diversity: DiversityMetrics
    rarity: Tuple[RarityScore, ...]
    migration: Tuple[MigrationProfile, ...]
    individuals: Tuple[IndividualEstimate, ...]
    today: PeriodStats
    comparison: ComparisonStats
    insights: Tuple[Insight, ...]

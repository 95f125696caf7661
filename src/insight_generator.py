"""
Natural-language insights over one analysis pass.

A pure function of the aggregates the engine already computed. Insights are
returned in a fixed rank order and each kind is emitted only when it has
something to say.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from config import InsightConfig
from migration_classifier import upcoming_transitions
from models import (
    Insight, TemporalSummary, ComparisonStats, SpeciesStat, DiversityMetrics, MigrationProfile,
    IndividualEstimate, PredictionStatus
)
from utils import percent_change, format_hour

logger = logging.getLogger(__name__)

EXCELLENT_VARIETY_SPECIES = 15
GOOD_VARIETY_SPECIES = 8
LARGE_MILESTONE = 10000
MILESTONE = 1000
WEEK_DAYS = 7


def _peak_hour(temporal: TemporalSummary) -> Optional[Insight]:
    peak = max(temporal.hours, key=lambda b: b.count, default=None)
    if peak is None or peak.count == 0:
        return None
    return Insight(
        kind='peak-time', icon='🕐', title='Peak Activity Hour',
        text=f"Most bird activity occurs at {format_hour(peak.key)} with {peak.count} detections. "
             f"Sit by the window during this time!",
    )


def _dominant_species(stats: Sequence[SpeciesStat], total: int) -> Optional[Insight]:
    if not stats or total == 0:
        return None
    top = stats[0]
    share = top.count / total * 100
    return Insight(
        kind='common-species', icon='👑', title='Most Common Visitor',
        text=f"{top.name} is your backyard champion, accounting for {share:.1f}% of all "
             f"detections ({top.count} total sightings).",
    )


def _activity_trend(comparison: ComparisonStats, materiality: float) -> Optional[Insight]:
    """Week-over-week change of the daily average; a silent prior week reads as new activity."""
    recent_avg = comparison.this_week.detections / WEEK_DAYS
    previous_avg = comparison.last_week.detections / WEEK_DAYS

    change = percent_change(recent_avg, previous_avg)
    if change is None:
        if recent_avg == 0:
            return None
        return Insight(
            kind='activity-trend', icon='📈', title='New Activity',
            text=f"Birds are back: {recent_avg:.1f} detections per day this week after a "
                 f"quiet previous week.",
        )

    if abs(change) <= materiality:
        return None
    direction = 'increased' if change > 0 else 'decreased'
    follow_up = 'Great time for birding!' if change > 0 else 'Activity may pick up soon.'
    return Insight(
        kind='activity-trend', icon='📈' if change > 0 else '📉', title='Activity Trend',
        text=f"Bird activity has {direction} by {abs(change):.1f}% over the past week. {follow_up}",
    )


def _diversity(diversity: DiversityMetrics) -> Optional[Insight]:
    richness = diversity.richness
    if richness == 0:
        return None
    if richness >= EXCELLENT_VARIETY_SPECIES:
        remark = 'Excellent diversity!'
    elif richness >= GOOD_VARIETY_SPECIES:
        remark = 'Good variety!'
    else:
        remark = 'More species may appear as seasons change.'
    return Insight(
        kind='diversity', icon='🌈', title='Species Diversity',
        text=f"You've detected {richness} different species in your backyard. {remark} "
             f"Shannon index {diversity.shannon.value:.2f} ({diversity.shannon.interpretation}).",
    )


def _top_three(stats: Sequence[SpeciesStat]) -> Optional[Insight]:
    if len(stats) < 3:
        return None
    names = ', '.join(s.name for s in stats[:3])
    return Insight(kind='top-species', icon='🏆', title='Your Top 3 Species',
                   text=f"{names} are your most frequent visitors.")


def _new_species(stats: Sequence[SpeciesStat], now: datetime, days: int) -> Optional[Insight]:
    cutoff = now - timedelta(days=days)
    new = [s for s in stats if s.first_seen >= cutoff]
    if not new:
        return None
    names = ', '.join(s.name for s in new[:3])
    more = ' and more' if len(new) > 3 else ''
    return Insight(kind='new-species', icon='🆕', title='New Visitors This Week',
                   text=f"{len(new)} new species detected: {names}{more}.")


def _busiest_month(temporal: TemporalSummary) -> Optional[Insight]:
    best = max(temporal.months, key=lambda b: b.count, default=None)
    if best is None or best.count == 0:
        return None
    return Insight(kind='best-month', icon='📅', title='Most Active Month',
                   text=f"{best.label} is your busiest month with {best.count} detections.")


def _rare_visitors(stats: Sequence[SpeciesStat], threshold: int) -> Optional[Insight]:
    rare = [s for s in stats if s.count <= threshold]
    if not rare:
        return None
    return Insight(
        kind='rare-visitors', icon='💎', title='Rare Visitors',
        text=f"You've had {len(rare)} species with {threshold} or fewer sightings. "
             f"Keep watching - you might see them again!",
    )


def _migration(profiles: Sequence[MigrationProfile], now: datetime, days: int) -> Optional[Insight]:
    upcoming = upcoming_transitions(profiles, now.date(), days)
    if not upcoming:
        return None
    migrating = [p.species for p in upcoming if p.prediction.status == PredictionStatus.MIGRATING]
    expected = [p.species for p in upcoming if p.prediction.status == PredictionStatus.EXPECTED]

    parts = []
    if migrating:
        parts.append(f"Migrating now: {', '.join(migrating[:3])}{' and more' if len(migrating) > 3 else ''}.")
    if expected:
        parts.append(f"Expected within {days} days: "
                     f"{', '.join(expected[:3])}{' and more' if len(expected) > 3 else ''}.")
    return Insight(kind='migration', icon='🦅', title='Migration Watch', text=' '.join(parts))


def _individuals(stats: Sequence[SpeciesStat],
                 individuals: Sequence[IndividualEstimate]) -> Optional[Insight]:
    if not stats:
        return None
    dominant = stats[0].name
    estimate = next((e for e in individuals if e.species == dominant), None)
    if estimate is None:
        return None
    return Insight(
        kind='individuals', icon='🐦', title='Individual Visitors',
        text=f"Your {estimate.detection_count} {dominant} detections come from an estimated "
             f"{estimate.cluster_count} separate visits (about {estimate.avg_cluster_size} "
             f"detections each).",
    )


def _milestone(total: int) -> Optional[Insight]:
    if total >= LARGE_MILESTONE:
        return Insight(kind='milestone', icon='🎉', title='Detection Milestone!',
                       text=f"Congratulations! You've recorded over {total // 1000}K bird detections.")
    if total >= MILESTONE:
        return Insight(kind='milestone', icon='🎉', title='Detection Milestone!',
                       text=f"You've recorded over {total / 1000:.1f}K bird detections. Keep watching!")
    return None


def generate_insights(temporal: TemporalSummary,
                      species_stats: Sequence[SpeciesStat],
                      diversity: DiversityMetrics,
                      migration: Sequence[MigrationProfile],
                      individuals: Sequence[IndividualEstimate],
                      comparison: ComparisonStats,
                      now: datetime,
                      config: Optional[InsightConfig] = None,
                      rare_threshold: int = 3) -> Tuple[Insight, ...]:
    """
    Build the ranked insight list for one analysis pass.

    Args:
        temporal: Temporal histograms
        species_stats: Species statistics, most detected first
        diversity: Community diversity metrics
        migration: Migration profiles
        individuals: Individual estimates per species
        comparison: Period comparison (this week vs last week drives the trend)
        now: Reference time
        config: Insight thresholds
        rare_threshold: Maximum detections for a rare visitor

    Returns:
        Insights with ranks starting at 1
    """
    config = config or InsightConfig()
    total = sum(s.count for s in species_stats)

    candidates: List[Optional[Insight]] = [
        _peak_hour(temporal),
        _dominant_species(species_stats, total),
        _activity_trend(comparison, config.trend_materiality_percent),
        _diversity(diversity),
        _top_three(species_stats),
        _new_species(species_stats, now, config.new_species_days),
        _busiest_month(temporal),
        _rare_visitors(species_stats, rare_threshold),
        _migration(migration, now, config.upcoming_migration_days),
        _individuals(species_stats, individuals),
        _milestone(total),
    ]

    insights = []
    for insight in candidates:
        if insight is None:
            continue
        insights.append(Insight(kind=insight.kind, icon=insight.icon, title=insight.title,
                                text=insight.text, rank=len(insights) + 1))

    logger.debug(f"Generated {len(insights)} insights")
    return tuple(insights)

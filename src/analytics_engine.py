#!/usr/bin/env python3
"""
Detection analytics engine.
Runs normalization, aggregation, diversity, migration, clustering and insight generation in one pass,
and exposes the forecasting and species-comparison views over the same records.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from activity_forecast import (
    predict_peak_activity, predict_next_detections, co_occurrence, compare_species
)
from alert_service import AlertService
from config import Config
from detection_normalizer import normalize_records
from diversity_calculator import calculate_diversity, calculate_rarity
from individual_estimator import estimate_individuals
from insight_generator import generate_insights
from migration_catalog import SpeciesCatalog
from migration_classifier import analyze_migration
from models import AlertResult, AnalyticsReport, Detection, ForecastReport, SpeciesComparison
from species_statistics import compute_species_stats
from temporal_aggregator import aggregate, filter_by_date_range, today_stats, comparison_stats
from utils import PerformanceTimer, to_local_naive

logger = logging.getLogger(__name__)


class DetectionAnalyticsEngine:
    """
    Stateless analytics pipeline over a snapshot of detection records.

    Configuration and the species catalog are injected; every call recomputes
    its results from the records it is given.
    """

    def __init__(self, config: Optional[Config] = None, catalog: Optional[SpeciesCatalog] = None):
        self.config = config or Config()
        self.catalog = catalog or SpeciesCatalog()
        self.alert_service = AlertService(self.config)

    def _reference_time(self, now: Optional[datetime]) -> datetime:
        if now is None:
            return datetime.now()
        return to_local_naive(now, self.config.normalizer.timezone)

    def normalize(self, records: Iterable, now: Optional[datetime] = None) -> List[Detection]:
        """Normalize raw records into detections."""
        return normalize_records(records, self._reference_time(now), self.config.normalizer)

    def analyze(self, records: Iterable, now: Optional[datetime] = None,
                date_range: str = "all") -> AnalyticsReport:
        """
        Run the full analysis pipeline.

        Args:
            records: Raw detection records (or normalized detections)
            now: Reference time; defaults to the current time
            date_range: "all", "today", "week" or "month"

        Returns:
            AnalyticsReport for the selected range
        """
        now = self._reference_time(now)

        with PerformanceTimer("Detection analysis"):
            detections = filter_by_date_range(self.normalize(records, now), date_range, now)
            # Stable input order so repeated runs produce identical output
            detections.sort(key=lambda d: (d.timestamp, d.species, d.confidence))

            temporal = aggregate(detections, now, self.config.aggregation.daily_window_days)
            species_stats = compute_species_stats(detections)
            diversity = calculate_diversity(species_stats)
            rarity = calculate_rarity(species_stats, self.config.rarity.rare_count_threshold)
            migration = analyze_migration(detections, now, self.catalog)
            individuals = estimate_individuals(detections, self.config.clustering)
            comparison = comparison_stats(detections, now)
            insights = generate_insights(
                temporal, species_stats, diversity, migration, individuals, comparison, now,
                config=self.config.insights,
                rare_threshold=self.config.rarity.rare_count_threshold,
            )

            report = AnalyticsReport(
                generated_at=now,
                date_range=date_range,
                total_detections=len(detections),
                total_species=len(species_stats),
                temporal=temporal,
                species_stats=species_stats,
                diversity=diversity,
                rarity=rarity,
                migration=migration,
                individuals=individuals,
                today=today_stats(detections, now),
                comparison=comparison,
                insights=insights,
            )

        logger.info(f"Analyzed {report.total_detections} detections of "
                    f"{report.total_species} species ({date_range})")
        return report

    def check_alerts(self, new_records: Iterable, report: AnalyticsReport,
                     notified: Iterable[str] = frozenset(),
                     now: Optional[datetime] = None) -> AlertResult:
        """Check newly arrived records against the species statistics of a report."""
        now = self._reference_time(now)
        new_detections = self.normalize(new_records, now)
        return self.alert_service.check_alerts(new_detections, report.species_stats, notified)

    def check_overdue(self, records: Iterable, notified: Iterable[str] = frozenset(),
                      now: Optional[datetime] = None) -> AlertResult:
        """Check the full detection history for overdue regular visitors."""
        now = self._reference_time(now)
        return self.alert_service.check_overdue(self.normalize(records, now), notified, now)

    def forecast(self, records: Iterable, now: Optional[datetime] = None,
                 days: int = 7, min_co_occurrence: int = 3) -> ForecastReport:
        """
        Forecast upcoming activity from the full detection history.

        Args:
            records: Raw detection records (or normalized detections)
            now: Reference time; defaults to the current time
            days: Number of days of peak-activity forecast, today first
            min_co_occurrence: Shared hours needed before a species pair is reported

        Returns:
            ForecastReport with peak hours, next expected detections, co-occurring
            pairs, late catalog migrants and the species treated as migrants
        """
        now = self._reference_time(now)
        detections = self.normalize(records, now)
        detections.sort(key=lambda d: (d.timestamp, d.species, d.confidence))
        species_stats = compute_species_stats(detections)

        migrants = tuple(s.name for s in species_stats
                         if self.catalog.is_migratory(s.name, s.first_seen, s.last_seen))

        report = ForecastReport(
            generated_at=now,
            peak_activity=tuple(predict_peak_activity(detections, now, days)),
            next_detections=tuple(predict_next_detections(detections, now)),
            co_occurrences=tuple(co_occurrence(detections, min_co_occurrence)),
            late_arrivals=tuple(self.catalog.late_arrivals(species_stats, now.date())),
            migrants=migrants,
        )
        logger.info(f"Forecast built for {len(species_stats)} species "
                    f"({len(report.late_arrivals)} late arrivals)")
        return report

    def compare_species(self, names: Sequence[str], records: Iterable,
                        now: Optional[datetime] = None) -> Optional[SpeciesComparison]:
        """Compare hourly activity of the named species; None for fewer than two names."""
        return compare_species(names, self.normalize(records, now))

"""
Unit tests for insight generation.
"""

import pytest
from datetime import datetime, timedelta

import sys
sys.path.append('src')

from config import InsightConfig
from diversity_calculator import calculate_diversity
from individual_estimator import estimate_individuals
from insight_generator import generate_insights
from migration_classifier import analyze_migration
from models import Detection
from species_statistics import compute_species_stats
from temporal_aggregator import aggregate, comparison_stats

NOW = datetime(2024, 6, 15, 12, 0)


def insights_for(detections, now=NOW, config=None, window_days=30):
    stats = compute_species_stats(detections)
    return generate_insights(
        aggregate(detections, now, window_days),
        stats,
        calculate_diversity(stats),
        analyze_migration(detections, now),
        estimate_individuals(detections),
        comparison_stats(detections, now),
        now,
        config=config,
    )


def daily(species, days_ago, per_day, hour=7):
    start = datetime(NOW.year, NOW.month, NOW.day, hour) - timedelta(days=days_ago)
    return [Detection(species, start + timedelta(seconds=30 * i), 0.8) for i in range(per_day)]


def by_kind(insights):
    return {insight.kind: insight for insight in insights}


class TestActivityTrend:
    """Test week-over-week change."""

    def test_zero_baseline_reports_new_activity(self):
        """Test a silent previous week never produces an infinite change."""
        detections = []
        for days_ago in range(7):
            detections += daily("Robin", days_ago, 5)
        insights = insights_for(detections)

        trend = by_kind(insights)['activity-trend']
        assert trend.title == "New Activity"
        assert "5.0 detections per day" in trend.text
        for insight in insights:
            assert "Infinity" not in insight.text
            assert "inf%" not in insight.text

    def test_material_increase(self):
        """Test a doubling is reported."""
        detections = []
        for days_ago in range(14):
            detections += daily("Robin", days_ago, 4 if days_ago < 7 else 2)
        trend = by_kind(insights_for(detections))['activity-trend']
        assert trend.title == "Activity Trend"
        assert "increased by 100.0%" in trend.text

    def test_immaterial_change_suppressed(self):
        """Test changes within the materiality threshold are skipped."""
        detections = []
        for days_ago in range(14):
            detections += daily("Robin", days_ago, 10)
        detections += daily("Robin", 0, 3, hour=18)
        assert 'activity-trend' not in by_kind(insights_for(detections))

    def test_configurable_materiality(self):
        """Test a lower threshold reports the same change."""
        detections = []
        for days_ago in range(14):
            detections += daily("Robin", days_ago, 10)
        detections += daily("Robin", 0, 3, hour=18)
        config = InsightConfig(trend_materiality_percent=1.0)
        assert 'activity-trend' in by_kind(insights_for(detections, config=config))

    def test_short_daily_window_flat_activity(self):
        """Test a daily window shorter than two weeks does not invent a change."""
        detections = []
        for days_ago in range(30):
            detections += daily("Robin", days_ago, 2)
        for window_days in (10, 5):
            assert 'activity-trend' not in by_kind(insights_for(detections, window_days=window_days))

    def test_short_daily_window_real_change(self):
        """Test the trend still follows the detections when the daily window is short."""
        detections = []
        for days_ago in range(14):
            detections += daily("Robin", days_ago, 4 if days_ago < 7 else 2)
        trend = by_kind(insights_for(detections, window_days=5))['activity-trend']
        assert "increased by 100.0%" in trend.text

    def test_both_weeks_empty(self):
        """Test no trend without any recent activity."""
        detections = daily("Robin", 40, 3)
        assert 'activity-trend' not in by_kind(insights_for(detections))


class TestInsightSet:
    """Test the full ranked list."""

    def setup_method(self):
        """Set up a varied detection set."""
        self.detections = (
            daily("Robin", 0, 6) + daily("Robin", 20, 6)
            + daily("Wren", 1, 3, hour=9)
            + daily("Blue Jay", 3, 2, hour=9)
            + daily("Killdeer", 30, 1, hour=18)
        )

    def test_rank_order(self):
        """Test kinds appear in fixed order with consecutive ranks."""
        insights = insights_for(self.detections)
        kinds = [i.kind for i in insights]
        assert kinds[:2] == ['peak-time', 'common-species']
        assert kinds.index('diversity') < kinds.index('top-species') < kinds.index('new-species')
        assert kinds.index('best-month') < kinds.index('rare-visitors') < kinds.index('individuals')
        assert [i.rank for i in insights] == list(range(1, len(insights) + 1))

    def test_dominant_species_share(self):
        """Test dominant species text."""
        common = by_kind(insights_for(self.detections))['common-species']
        assert "Robin" in common.text
        assert "66.7%" in common.text

    def test_new_species(self):
        """Test species first seen within the week."""
        new = by_kind(insights_for(self.detections))['new-species']
        assert "2 new species detected: Wren, Blue Jay" in new.text

    def test_rare_visitors(self):
        """Test rare count."""
        rare = by_kind(insights_for(self.detections))['rare-visitors']
        assert "3 species" in rare.text

    def test_individuals(self):
        """Test individual estimate for the dominant species."""
        individuals = by_kind(insights_for(self.detections))['individuals']
        assert "12 Robin detections" in individuals.text
        assert "2 separate visits" in individuals.text

    def test_no_milestone_for_small_sets(self):
        """Test milestones need 1000 detections."""
        assert 'milestone' not in by_kind(insights_for(self.detections))

    def test_milestone(self):
        """Test 1K milestone wording."""
        detections = [Detection("Robin", NOW - timedelta(minutes=i), 0.8) for i in range(1200)]
        milestone = by_kind(insights_for(detections))['milestone']
        assert "1.2K" in milestone.text

    def test_migration_watch(self):
        """Test species expected soon are mentioned."""
        detections = self.detections + [
            Detection("Oriole", datetime(2023, 7, 1, 8), 0.8),
            Detection("Oriole", datetime(2023, 8, 1, 8), 0.8),
        ]
        # Oriole window is day 182..213; on 2024-06-15 it is expected within 30 days
        migration = by_kind(insights_for(detections))['migration']
        assert "Oriole" in migration.text

    def test_empty(self):
        """Test no insights without detections."""
        assert insights_for([]) == ()


if __name__ == '__main__':
    pytest.main([__file__])

"""
Unit tests for temporal aggregation.
"""

import pytest
from datetime import datetime, timedelta

import sys
sys.path.append('src')

from exceptions import InvalidInputError
from models import Detection
from temporal_aggregator import (
    daily_histogram, hourly_histogram, weekday_histogram, monthly_histogram, aggregate,
    filter_by_date_range, today_stats, recent_detections, comparison_stats, trend_stats
)

NOW = datetime(2024, 6, 15, 12, 0)  # Saturday


def make(species, *args, confidence=0.8):
    return Detection(species, datetime(*args), confidence)


class TestDailyHistogram:
    """Test the trailing day window."""

    def setup_method(self):
        """Set up detections inside and outside the window."""
        self.detections = [
            make("Robin", 2024, 6, 15, 6, 0),
            make("Robin", 2024, 6, 15, 7, 0),
            make("Blue Jay", 2024, 6, 15, 8, 0),
            make("Robin", 2024, 5, 17, 9, 0),   # first day of the window
            make("Robin", 2024, 5, 16, 9, 0),   # just outside
            make("Robin", 2023, 6, 15, 9, 0),   # a year ago
        ]

    def test_zero_filled_window(self):
        """Test window length and ordering."""
        days = daily_histogram(self.detections, NOW)
        assert len(days) == 30
        assert days[-1].key == NOW.date()
        assert days[0].key == NOW.date() - timedelta(days=29)
        assert sum(1 for b in days if b.count == 0) == 28

    def test_window_sum(self):
        """Test bucket counts sum to detections inside the window."""
        days = daily_histogram(self.detections, NOW)
        window_start = datetime(2024, 5, 17)
        inside = [d for d in self.detections if window_start <= d.timestamp < NOW + timedelta(days=1)]
        assert sum(b.count for b in days) == len(inside) == 4

    def test_unique_species(self):
        """Test species sets per bucket."""
        today = daily_histogram(self.detections, NOW)[-1]
        assert today.count == 3
        assert today.unique_species == frozenset({"Robin", "Blue Jay"})
        assert today.species_count == 2

    def test_custom_window(self):
        """Test a shorter window."""
        assert len(daily_histogram(self.detections, NOW, window_days=7)) == 7


class TestFixedHistograms:
    """Test hour, weekday and month histograms."""

    def setup_method(self):
        """Set up detections across years."""
        self.detections = [
            make("Robin", 2024, 6, 15, 6, 0),      # Saturday
            make("Robin", 2023, 6, 11, 6, 30),     # Sunday
            make("Wren", 2024, 1, 7, 23, 59),      # Sunday
        ]

    def test_hours(self):
        """Test 24 hour bins."""
        hours = hourly_histogram(self.detections)
        assert len(hours) == 24
        assert hours[6].count == 2
        assert hours[23].count == 1
        assert hours[6].label == "6:00 AM"

    def test_weekdays_sunday_first(self):
        """Test weekday bins start on Sunday."""
        weekdays = weekday_histogram(self.detections)
        assert len(weekdays) == 7
        assert weekdays[0].label == "Sunday"
        assert weekdays[0].count == 2
        assert weekdays[6].count == 1

    def test_months_sum_years(self):
        """Test months from different years share a bin."""
        months = monthly_histogram(self.detections)
        assert len(months) == 12
        assert months[5].count == 2
        assert months[5].unique_species == frozenset({"Robin"})
        assert months[0].count == 1

    def test_empty(self):
        """Test empty input gives zero-filled buckets."""
        summary = aggregate([], NOW)
        assert len(summary.days) == 30
        assert all(b.count == 0 for b in summary.hours + summary.weekdays + summary.months)


class TestPeriods:
    """Test date range filter and period statistics."""

    def setup_method(self):
        """Set up detections over three weeks."""
        self.detections = [
            make("Robin", 2024, 6, 15, 8, 0),
            make("Wren", 2024, 6, 15, 9, 0),
            make("Robin", 2024, 6, 14, 8, 0),
            make("Robin", 2024, 6, 10, 8, 0),
            make("Killdeer", 2024, 6, 3, 8, 0),
            make("Robin", 2024, 5, 1, 8, 0),
        ]

    def test_filter_ranges(self):
        """Test named ranges."""
        assert len(filter_by_date_range(self.detections, "all", NOW)) == 6
        assert len(filter_by_date_range(self.detections, "today", NOW)) == 2
        assert len(filter_by_date_range(self.detections, "week", NOW)) == 4
        assert len(filter_by_date_range(self.detections, "month", NOW)) == 5

    def test_unknown_range(self):
        """Test invalid range name."""
        with pytest.raises(InvalidInputError, match="Unknown date range"):
            filter_by_date_range(self.detections, "decade", NOW)

    def test_today_stats(self):
        """Test today's detections and species."""
        stats = today_stats(self.detections, NOW)
        assert stats.detections == 2
        assert stats.species == 2

    def test_recent_detections(self):
        """Test newest first with limit."""
        recent = recent_detections(self.detections, limit=2)
        assert [d.species for d in recent] == ["Wren", "Robin"]

    def test_comparison_stats(self):
        """Test today/yesterday and week/last week."""
        stats = comparison_stats(self.detections, NOW)
        assert stats.today.detections == 2
        assert stats.yesterday.detections == 1
        assert stats.this_week.detections == 4
        assert stats.last_week.detections == 1
        assert stats.last_week.species == 1
        assert stats.all_time.detections == 6
        assert stats.all_time.species == 3


class TestTrendStats:
    """Test trend statistics."""

    def test_increasing(self):
        """Test rising series."""
        stats = trend_stats([1] * 7 + [5] * 7)
        assert stats.trend == "Increasing"
        assert stats.peak == 5
        assert stats.total == 42
        assert stats.average == 3.0

    def test_decreasing_and_stable(self):
        """Test falling and flat series."""
        assert trend_stats([10] * 7 + [2] * 7).trend == "Decreasing"
        assert trend_stats([4] * 14).trend == "Stable"

    def test_zero_baseline(self):
        """Test zero baseline is treated as one."""
        assert trend_stats([0] * 7 + [1] * 7).trend == "Increasing"

    def test_empty(self):
        """Test empty series."""
        stats = trend_stats([])
        assert stats.total == 0
        assert stats.trend == "Stable"


if __name__ == '__main__':
    pytest.main([__file__])

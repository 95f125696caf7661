"""
Unit tests for per-species statistics.
"""

import pytest
from datetime import datetime

import sys
sys.path.append('src')

from models import Detection
from species_statistics import (
    compute_species_stats, top_species, rarest_species, species_shares, stats_by_name
)


class TestComputeSpeciesStats:
    """Test grouping and accumulation."""

    def setup_method(self):
        """Set up a small detection set."""
        self.detections = [
            Detection("Robin", datetime(2024, 6, 2, 8), 0.9),
            Detection("Robin", datetime(2024, 6, 1, 8), 0.7),
            Detection("Wren", datetime(2024, 6, 3, 8), 0.6),
            Detection("Blue Jay", datetime(2024, 6, 4, 8), 0.5),
            Detection("robin", datetime(2024, 6, 5, 8), 0.5),
        ]

    def test_counts_and_confidence(self):
        """Test count, average confidence and first/last seen."""
        stats = stats_by_name(compute_species_stats(self.detections))
        robin = stats["Robin"]
        assert robin.count == 2
        assert robin.avg_confidence == pytest.approx(0.8)
        assert robin.first_seen == datetime(2024, 6, 1, 8)
        assert robin.last_seen == datetime(2024, 6, 2, 8)

    def test_exact_name_grouping(self):
        """Test names are case-sensitive."""
        stats = stats_by_name(compute_species_stats(self.detections))
        assert "robin" in stats
        assert stats["robin"].count == 1

    def test_sort_tie_break_by_name(self):
        """Test count descending then name ascending."""
        names = [s.name for s in compute_species_stats(self.detections)]
        assert names == ["Robin", "Blue Jay", "Wren", "robin"]

    def test_first_seen_not_after_last_seen(self):
        """Test timestamp ordering invariant."""
        for stat in compute_species_stats(self.detections):
            assert stat.first_seen <= stat.last_seen

    def test_empty(self):
        """Test empty input."""
        assert compute_species_stats([]) == ()


class TestHelpers:
    """Test top, rarest and share helpers."""

    def setup_method(self):
        """Set up statistics with a clear ranking."""
        detections = []
        for name, count in (("Robin", 6), ("Wren", 3), ("Killdeer", 1), ("Barred Owl", 1)):
            detections.extend(Detection(name, datetime(2024, 6, 1, 8, i), 0.8) for i in range(count))
        self.stats = compute_species_stats(detections)

    def test_top_species(self):
        """Test top N."""
        assert [s.name for s in top_species(self.stats, 2)] == ["Robin", "Wren"]

    def test_rarest_species(self):
        """Test rarest ordering and threshold."""
        rarest = rarest_species(self.stats, threshold=3)
        assert [s.name for s in rarest] == ["Barred Owl", "Killdeer", "Wren"]
        assert rarest_species(self.stats, threshold=1, limit=1)[0].name == "Barred Owl"

    def test_species_shares(self):
        """Test percentages with one decimal."""
        shares = species_shares(self.stats)
        assert shares[0].name == "Robin"
        assert shares[0].percentage == 54.5
        assert species_shares(()) == []


if __name__ == '__main__':
    pytest.main([__file__])

"""
Unit tests for diversity and rarity metrics.
"""

import math
import pytest
from datetime import datetime

import sys
sys.path.append('src')

from diversity_calculator import (
    calculate_diversity, calculate_rarity, rarity_score, rarity_tier, diversity_trends,
    shannon_index, simpson_index
)
from exceptions import InvalidInputError
from models import Detection, SpeciesStat, RarityTier


def stat(name, count):
    seen = datetime(2024, 6, 1)
    return SpeciesStat(name=name, count=count, avg_confidence=0.8, first_seen=seen, last_seen=seen)


class TestDiversity:
    """Test Shannon, Simpson and evenness."""

    def test_empty_input(self):
        """Test empty input returns zeros without raising."""
        metrics = calculate_diversity([])
        assert metrics.richness == 0
        assert metrics.shannon.value == 0.0
        assert metrics.evenness.value == 0.0
        assert metrics.shannon.interpretation == "No data"

    def test_single_species(self):
        """Test one species has zero diversity."""
        metrics = calculate_diversity([stat("Robin", 12)])
        assert metrics.shannon.value == 0.0
        assert metrics.simpson.value == 0.0
        assert metrics.evenness.value == 0.0
        assert metrics.richness == 1
        assert metrics.shannon.interpretation == "No diversity"

    def test_even_community(self):
        """Test a perfectly even community."""
        metrics = calculate_diversity([stat("A", 5), stat("B", 5), stat("C", 5), stat("D", 5)])
        assert metrics.shannon.value == pytest.approx(math.log(4))
        assert metrics.simpson.value == pytest.approx(0.75)
        assert metrics.evenness.value == pytest.approx(1.0)
        assert metrics.evenness.interpretation == "Very even"
        assert metrics.simpson.interpretation == "Moderate diversity"
        assert metrics.shannon.interpretation == "Low diversity"

    def test_two_species_uneven(self):
        """Test shares are taken from counts."""
        metrics = calculate_diversity([stat("A", 9), stat("B", 1)])
        expected = -(0.9 * math.log(0.9) + 0.1 * math.log(0.1))
        assert metrics.shannon.value == pytest.approx(expected)
        assert metrics.simpson.value == pytest.approx(1 - 0.81 - 0.01)
        assert metrics.total_detections == 10

    def test_index_helpers_on_zero_counts(self):
        """Test helpers guard empty counts."""
        assert shannon_index([]) == 0.0
        assert simpson_index([0, 0]) == 0.0


class TestRarity:
    """Test rarity scores and tiers."""

    def test_score_bounds(self):
        """Test most common scores 0 and single detections score 100."""
        assert rarity_score(100, 100) == 0
        assert rarity_score(1, 100) == 100
        assert rarity_score(10, 100) == 50

    def test_all_singletons(self):
        """Test max count of one gives 100 everywhere."""
        assert rarity_score(1, 1) == 100

    def test_monotonic(self):
        """Test score never increases with count."""
        scores = [rarity_score(count, 500) for count in range(1, 501)]
        assert all(a >= b for a, b in zip(scores, scores[1:]))

    def test_tiers(self):
        """Test tier assignment."""
        assert rarity_tier(3, 0) == RarityTier.RARE
        assert rarity_tier(4, 70) == RarityTier.UNCOMMON
        assert rarity_tier(40, 30) == RarityTier.COMMON
        assert rarity_tier(90, 5) == RarityTier.ABUNDANT
        assert rarity_tier(5, 10, rare_threshold=5) == RarityTier.RARE

    def test_calculate_rarity_sorted(self):
        """Test rarest first with name tie-break."""
        scores = calculate_rarity([stat("Robin", 100), stat("Wren", 1), stat("Owl", 1), stat("Jay", 10)])
        assert [s.species for s in scores] == ["Owl", "Wren", "Jay", "Robin"]
        assert scores[0].tier == RarityTier.RARE
        assert scores[-1].tier == RarityTier.ABUNDANT
        assert calculate_rarity([]) == ()


class TestDiversityTrends:
    """Test diversity per period."""

    def setup_method(self):
        """Set up detections over two days."""
        self.now = datetime(2024, 6, 15, 12, 0)
        self.detections = [
            Detection("Robin", datetime(2024, 6, 15, 8), 0.8),
            Detection("Wren", datetime(2024, 6, 15, 9), 0.8),
            Detection("Robin", datetime(2024, 6, 14, 8), 0.8),
        ]

    def test_daily(self):
        """Test daily points, oldest first."""
        points = diversity_trends(self.detections, "daily", 3, self.now)
        assert [p.detections for p in points] == [0, 1, 2]
        assert points[-1].richness == 2
        assert points[-1].simpson == 0.5
        assert points[1].shannon == 0.0
        assert points[-1].label == "Jun 15"

    def test_weekly_and_monthly(self):
        """Test longer periods gather everything."""
        weekly = diversity_trends(self.detections, "weekly", 2, self.now)
        assert weekly[-1].detections == 3
        monthly = diversity_trends(self.detections, "monthly", 13, self.now)
        assert monthly[-1].label == "Jun 2024"
        assert monthly[0].label == "Jun 2023"
        assert monthly[-1].detections == 3

    def test_empty_and_invalid(self):
        """Test empty input and unknown period."""
        assert diversity_trends([], "daily", 5, self.now) == []
        with pytest.raises(InvalidInputError):
            diversity_trends(self.detections, "hourly", 5, self.now)


if __name__ == '__main__':
    pytest.main([__file__])

"""
Per-species detection statistics.
"""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from models import Detection, SpeciesStat, SpeciesShare

logger = logging.getLogger(__name__)


def _sort_key(stat: SpeciesStat):
    return (-stat.count, stat.name)


def compute_species_stats(detections: Iterable[Detection]) -> Tuple[SpeciesStat, ...]:
    """
    Group detections by exact species name.

    Returns one SpeciesStat per species, sorted by count descending with ties
    broken by name ascending.
    """
    accumulators: Dict[str, list] = {}

    for detection in detections:
        acc = accumulators.get(detection.species)
        if acc is None:
            accumulators[detection.species] = [1, detection.confidence,
                                               detection.timestamp, detection.timestamp]
            continue
        acc[0] += 1
        acc[1] += detection.confidence
        if detection.timestamp < acc[2]:
            acc[2] = detection.timestamp
        if detection.timestamp > acc[3]:
            acc[3] = detection.timestamp

    stats = [
        SpeciesStat(name=name, count=count, avg_confidence=confidence_sum / count,
                    first_seen=first_seen, last_seen=last_seen)
        for name, (count, confidence_sum, first_seen, last_seen) in accumulators.items()
    ]
    stats.sort(key=_sort_key)
    logger.debug(f"Computed statistics for {len(stats)} species")
    return tuple(stats)


def top_species(stats: Sequence[SpeciesStat], n: int = 5) -> List[SpeciesStat]:
    return sorted(stats, key=_sort_key)[:n]


def rarest_species(stats: Sequence[SpeciesStat], threshold: int = 3,
                   limit: int = 10) -> List[SpeciesStat]:
    """Species with at most ``threshold`` detections, least detected first."""
    rare = [s for s in stats if s.count <= threshold]
    rare.sort(key=lambda s: (s.count, s.name))
    return rare[:limit]


def species_shares(stats: Sequence[SpeciesStat], limit: int = 10) -> List[SpeciesShare]:
    """Percentage of all detections per species (one decimal), largest first."""
    total = sum(s.count for s in stats)
    if total == 0:
        return []
    return [
        SpeciesShare(name=s.name, count=s.count, percentage=round(s.count / total * 100, 1))
        for s in top_species(stats, limit)
    ]


def stats_by_name(stats: Iterable[SpeciesStat]) -> Dict[str, SpeciesStat]:
    return {s.name: s for s in stats}

"""
Estimates how many distinct individual birds produced a species' detections.

Detections close together in time are assumed to come from the same bird
during one visit: anything within the rapid gap of a cluster's seed merges,
and anything within the session gap merges when it falls in the same
time-of-day bucket as the seed.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from config import ClusteringConfig
from models import Detection, IndividualEstimate
from utils import time_of_day_bucket

logger = logging.getLogger(__name__)


def cluster_detections(detections: Sequence[Detection],
                       config: Optional[ClusteringConfig] = None) -> List[Tuple[Detection, ...]]:
    """
    Greedy single-pass clustering of one species' detections.

    Args:
        detections: Detections of a single species, in any order
        config: Gap thresholds in seconds

    Returns:
        Clusters in chronological order of their seed detection
    """
    config = config or ClusteringConfig()
    ordered = sorted(detections, key=lambda d: d.timestamp)
    assigned = [False] * len(ordered)
    clusters = []

    for i, seed in enumerate(ordered):
        if assigned[i]:
            continue
        assigned[i] = True
        cluster = [seed]
        seed_bucket = time_of_day_bucket(seed.timestamp.hour)

        for j in range(i + 1, len(ordered)):
            gap = (ordered[j].timestamp - seed.timestamp).total_seconds()
            if gap > config.max_scan_gap_seconds:
                break
            if assigned[j]:
                continue
            same_bucket = time_of_day_bucket(ordered[j].timestamp.hour) == seed_bucket
            if gap < config.rapid_gap_seconds or (gap < config.session_gap_seconds and same_bucket):
                assigned[j] = True
                cluster.append(ordered[j])

        clusters.append(tuple(cluster))

    return clusters


def estimate_individuals(detections: Iterable[Detection],
                         config: Optional[ClusteringConfig] = None) -> Tuple[IndividualEstimate, ...]:
    """Estimated individuals per species, most individuals first, then by name."""
    by_species: Dict[str, List[Detection]] = defaultdict(list)
    for detection in detections:
        by_species[detection.species].append(detection)

    estimates = []
    for species, items in by_species.items():
        clusters = cluster_detections(items, config)
        estimates.append(IndividualEstimate(
            species=species,
            cluster_count=len(clusters),
            detection_count=len(items),
            avg_cluster_size=round(len(items) / len(clusters), 1),
            clusters=tuple(clusters),
        ))
        logger.debug(f"{species}: {len(items)} detections -> {len(clusters)} individual(s)")

    estimates.sort(key=lambda e: (-e.cluster_count, e.species))
    return tuple(estimates)

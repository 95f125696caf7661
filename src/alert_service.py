"""
Alert service for the detection analytics engine.

Decides which new detections deserve a watched/new/rare species alert and
which regular visitors are overdue, and formats the alert text. Delivery is
left to the caller, as is the set of already-notified alert keys: it is
passed in and the updated set is handed back in the result.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional, Sequence

from activity_forecast import interval_statistics
from config import Config
from models import Alert, AlertKind, AlertResult, Detection, SpeciesStat
from species_statistics import stats_by_name

logger = logging.getLogger(__name__)

CONFIDENT_THRESHOLD = 0.8


def detection_alert_key(species: str, when: datetime) -> str:
    return f"{species}|{when.date().isoformat()}"


def overdue_alert_key(species: str, when: datetime) -> str:
    return f"overdue|{species}|{when.date().isoformat()}"


class AlertFormatter:
    """Message formatting utilities for alerts."""

    @staticmethod
    def _species_phrase(species_name: str, confidence: float) -> str:
        if confidence >= CONFIDENT_THRESHOLD:
            return species_name
        return f"Possible {species_name}"

    @staticmethod
    def format_watched(species_name: str, confidence: float, timestamp: datetime) -> tuple:
        """Format watched species alert."""
        time_str = timestamp.strftime("%H:%M")
        phrase = AlertFormatter._species_phrase(species_name, confidence)
        return ("⭐ Watched Species Detected!",
                f"{phrase} detected at {time_str}\nConfidence: {confidence*100:.0f}%")

    @staticmethod
    def format_new(species_name: str, confidence: float, timestamp: datetime) -> tuple:
        """Format first-ever detection alert."""
        time_str = timestamp.strftime("%H:%M")
        phrase = AlertFormatter._species_phrase(species_name, confidence)
        return ("🎉 New Species!",
                f"{phrase} detected for the first time at {time_str}\n"
                f"Confidence: {confidence*100:.0f}%")

    @staticmethod
    def format_rare(species_name: str, confidence: float, timestamp: datetime,
                    count: int) -> tuple:
        """Format rare visitor alert."""
        time_str = timestamp.strftime("%H:%M")
        phrase = AlertFormatter._species_phrase(species_name, confidence)
        plural = 's' if count != 1 else ''
        return ("🦅 Rare Bird Detected!",
                f"{phrase} spotted at {time_str}! A rare visitor with only {count} "
                f"detection{plural}.\nConfidence: {confidence*100:.0f}%")

    @staticmethod
    def format_overdue(species_name: str, last_seen: datetime, avg_interval_hours: float,
                       elapsed_hours: float) -> tuple:
        """Format overdue visitor alert."""
        return ("⏰ Overdue Visitor",
                f"{species_name} usually shows up every {avg_interval_hours:.1f}h but has not "
                f"been heard for {elapsed_hours:.1f}h (last seen "
                f"{last_seen.strftime('%Y-%m-%d %H:%M')}).")


class AlertService:
    """
    Alert decisions for new detections and overdue species.

    Holds configuration only; every check is independent of previous ones
    except through the ``notified`` set the caller threads through.
    """

    def __init__(self, config: Config):
        self.config = config
        self.alert_config = config.alerts
        self.rare_threshold = config.rarity.rare_count_threshold
        self.formatter = AlertFormatter()

    def _classify(self, detection: Detection, stat: Optional[SpeciesStat]):
        alerts = self.alert_config
        species = detection.species

        if alerts.watched_species_alerts and species in alerts.watched_species:
            title, message = self.formatter.format_watched(species, detection.confidence,
                                                           detection.timestamp)
            return AlertKind.WATCHED, title, message
        if stat is None:
            return None
        if alerts.new_species and stat.count == 1:
            title, message = self.formatter.format_new(species, detection.confidence,
                                                       detection.timestamp)
            return AlertKind.NEW, title, message
        if alerts.rare_species and stat.count <= self.rare_threshold:
            title, message = self.formatter.format_rare(species, detection.confidence,
                                                        detection.timestamp, stat.count)
            return AlertKind.RARE, title, message
        return None

    def check_alerts(self, new_detections: Iterable[Detection],
                     species_stats: Sequence[SpeciesStat],
                     notified: Iterable[str] = frozenset()) -> AlertResult:
        """
        Check a batch of new detections for watched, new and rare species.

        Args:
            new_detections: Normalized detections that arrived since the last check
            species_stats: Statistics over the full detection set (including the batch)
            notified: Alert keys already delivered

        Returns:
            AlertResult with the raised alerts and the updated notified set
        """
        notified_keys = set(notified)
        if not self.alert_config.enabled:
            return AlertResult(alerts=(), notified=frozenset(notified_keys))

        stats = stats_by_name(species_stats)
        alerted_species = set()
        alerts = []

        for detection in new_detections:
            species = detection.species
            if species in alerted_species:
                continue
            key = detection_alert_key(species, detection.timestamp)
            if key in notified_keys:
                continue

            decision = self._classify(detection, stats.get(species))
            if decision is None:
                continue

            kind, title, message = decision
            alerts.append(Alert(kind=kind, species=species, title=title, message=message,
                                detected_at=detection.timestamp, key=key))
            alerted_species.add(species)
            notified_keys.add(key)
            logger.info(f"Alert raised: {kind.value} - {species}")

        return AlertResult(alerts=tuple(alerts), notified=frozenset(notified_keys))

    def check_overdue(self, detections: Iterable[Detection],
                      notified: Iterable[str] = frozenset(),
                      now: Optional[datetime] = None) -> AlertResult:
        """Flag regular visitors whose usual interval has been exceeded by the configured multiplier."""
        notified_keys = set(notified)
        if not self.alert_config.enabled:
            return AlertResult(alerts=(), notified=frozenset(notified_keys))

        now = now or datetime.now()
        by_species = defaultdict(list)
        for detection in detections:
            by_species[detection.species].append(detection.timestamp)

        alerts = []
        for species in sorted(by_species):
            timestamps = by_species[species]
            if len(timestamps) < self.alert_config.overdue_min_detections:
                continue

            mean, _, cv = interval_statistics(timestamps)
            if mean <= 0 or cv > self.alert_config.overdue_max_variation:
                logger.debug(f"{species}: irregular visits (cv={cv:.2f}), skipping overdue check")
                continue

            last_seen = max(timestamps)
            elapsed = (now - last_seen).total_seconds() / 3600.0
            if elapsed <= self.alert_config.overdue_multiplier * mean:
                continue

            key = overdue_alert_key(species, now)
            if key in notified_keys:
                continue

            title, message = self.formatter.format_overdue(species, last_seen, mean, elapsed)
            alerts.append(Alert(kind=AlertKind.OVERDUE, species=species, title=title,
                                message=message, detected_at=last_seen, key=key))
            notified_keys.add(key)
            logger.info(f"Overdue alert raised: {species} ({elapsed:.1f}h since last detection)")

        return AlertResult(alerts=tuple(alerts), notified=frozenset(notified_keys))

"""
Configuration for the detection analytics engine.

Every tunable the engine uses lives in one of the validated dataclasses below and
is injected through a ``Config`` instance; no analytics module reads the
environment or keeps module-level mutable settings.
"""

import logging
import os
import zoneinfo
from dataclasses import dataclass, field, asdict
from typing import Optional, Tuple, Mapping, Dict, Any

from dotenv import load_dotenv

from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

UNPARSEABLE_POLICIES = ("now", "reject")


@dataclass
class NormalizerConfig:
    """Detection normalization settings."""
    unparseable_policy: str = "now"  # "now" stamps the reference instant, "reject" drops the record
    timezone: Optional[str] = None   # None = system local time
    unknown_species: str = "Unknown"

    def __post_init__(self):
        if self.unparseable_policy not in UNPARSEABLE_POLICIES:
            raise ValueError(f"Invalid unparseable timestamp policy: {self.unparseable_policy}")
        if self.timezone:
            try:
                zoneinfo.ZoneInfo(self.timezone)
            except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Invalid timezone: {self.timezone}") from e
        if not self.unknown_species or not self.unknown_species.strip():
            raise ValueError("Unknown species sentinel must be a non-empty string")


@dataclass
class AggregationConfig:
    """Temporal aggregation settings."""
    daily_window_days: int = 30
    recent_limit: int = 50

    def __post_init__(self):
        if self.daily_window_days <= 0:
            raise ValueError("Daily window must be positive")
        if self.recent_limit <= 0:
            raise ValueError("Recent detection limit must be positive")


@dataclass
class RarityConfig:
    """Rarity scoring settings."""
    rare_count_threshold: int = 3
    rarest_limit: int = 10

    def __post_init__(self):
        if self.rare_count_threshold < 1:
            raise ValueError("Rare count threshold must be at least 1")
        if self.rarest_limit <= 0:
            raise ValueError("Rarest species limit must be positive")


@dataclass
class ClusteringConfig:
    """Individual-bird clustering thresholds (seconds)."""
    rapid_gap_seconds: float = 30.0
    session_gap_seconds: float = 300.0
    max_scan_gap_seconds: float = 600.0

    def __post_init__(self):
        if not (0 < self.rapid_gap_seconds <= self.session_gap_seconds <= self.max_scan_gap_seconds):
            raise ValueError("Invalid clustering gaps: expected 0 < rapid <= session <= max scan")


@dataclass
class InsightConfig:
    """Insight generation settings."""
    trend_materiality_percent: float = 10.0
    new_species_days: int = 7
    upcoming_migration_days: int = 30

    def __post_init__(self):
        if self.trend_materiality_percent < 0:
            raise ValueError("Trend materiality must not be negative")
        if self.new_species_days <= 0 or self.upcoming_migration_days <= 0:
            raise ValueError("Insight look-back/look-ahead windows must be positive")


@dataclass
class AlertConfig:
    """Alert generation settings."""
    enabled: bool = True
    rare_species: bool = True
    new_species: bool = True
    watched_species_alerts: bool = True
    watched_species: Tuple[str, ...] = field(default_factory=tuple)
    overdue_multiplier: float = 2.0
    overdue_min_detections: int = 3
    overdue_max_variation: float = 1.0  # coefficient of variation of intervals

    def __post_init__(self):
        self.watched_species = tuple(self.watched_species)
        if self.overdue_multiplier <= 1.0:
            raise ValueError("Overdue multiplier must be greater than 1")
        if self.overdue_min_detections < 2:
            raise ValueError("Overdue detection minimum must be at least 2")
        if self.overdue_max_variation <= 0:
            raise ValueError("Overdue variation limit must be positive")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """
    Main analytics configuration.

    Values come from the dataclass defaults, overridden by environment
    variables (a ``.env`` file is loaded when no explicit mapping is given).
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        if env is None:
            load_dotenv()
            env = os.environ
        self._env = env

        try:
            self.normalizer = NormalizerConfig(
                unparseable_policy=self._get_str("ANALYTICS_UNPARSEABLE_POLICY", "now"),
                timezone=self._get_str("ANALYTICS_TIMEZONE", None),
                unknown_species=self._get_str("ANALYTICS_UNKNOWN_SPECIES", "Unknown"),
            )
            self.aggregation = AggregationConfig(
                daily_window_days=self._get_int("ANALYTICS_DAILY_WINDOW_DAYS", 30),
                recent_limit=self._get_int("ANALYTICS_RECENT_LIMIT", 50),
            )
            self.rarity = RarityConfig(
                rare_count_threshold=self._get_int("ANALYTICS_RARE_THRESHOLD", 3),
                rarest_limit=self._get_int("ANALYTICS_RAREST_LIMIT", 10),
            )
            self.clustering = ClusteringConfig(
                rapid_gap_seconds=self._get_float("CLUSTER_RAPID_GAP_SECONDS", 30.0),
                session_gap_seconds=self._get_float("CLUSTER_SESSION_GAP_SECONDS", 300.0),
                max_scan_gap_seconds=self._get_float("CLUSTER_MAX_SCAN_GAP_SECONDS", 600.0),
            )
            self.insights = InsightConfig(
                trend_materiality_percent=self._get_float("INSIGHT_TREND_MATERIALITY_PERCENT", 10.0),
                new_species_days=self._get_int("INSIGHT_NEW_SPECIES_DAYS", 7),
                upcoming_migration_days=self._get_int("INSIGHT_UPCOMING_MIGRATION_DAYS", 30),
            )
            self.alerts = AlertConfig(
                enabled=self._get_bool("ALERTS_ENABLED", True),
                rare_species=self._get_bool("ALERTS_RARE_SPECIES", True),
                new_species=self._get_bool("ALERTS_NEW_SPECIES", True),
                watched_species_alerts=self._get_bool("ALERTS_WATCHED_SPECIES_ENABLED", True),
                watched_species=self._get_list("ALERTS_WATCHED_SPECIES"),
                overdue_multiplier=self._get_float("ALERTS_OVERDUE_MULTIPLIER", 2.0),
                overdue_min_detections=self._get_int("ALERTS_OVERDUE_MIN_DETECTIONS", 3),
                overdue_max_variation=self._get_float("ALERTS_OVERDUE_MAX_VARIATION", 1.0),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid analytics configuration: {e}") from e

    @classmethod
    def create_test_config(cls, **overrides) -> "Config":
        """Create a configuration from explicit overrides, ignoring the process environment."""
        return cls(env={key: str(value) for key, value in overrides.items()})

    def _get_str(self, key: str, default: Optional[str]) -> Optional[str]:
        value = self._env.get(key)
        if value is None or not value.strip():
            return default
        return value.strip()

    def _get_int(self, key: str, default: int) -> int:
        value = self._env.get(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring invalid integer for {key}: {value!r} (using {default})")
            return default

    def _get_float(self, key: str, default: float) -> float:
        value = self._env.get(key)
        if value is None or not value.strip():
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning(f"Ignoring invalid number for {key}: {value!r} (using {default})")
            return default

    def _get_bool(self, key: str, default: bool) -> bool:
        value = self._env.get(key)
        if value is None or not value.strip():
            return default
        return _parse_bool(value)

    def _get_list(self, key: str) -> Tuple[str, ...]:
        value = self._env.get(key)
        if not value:
            return ()
        return tuple(item.strip() for item in value.split(",") if item.strip())

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary for logging."""
        return {
            'normalizer': asdict(self.normalizer),
            'aggregation': asdict(self.aggregation),
            'rarity': asdict(self.rarity),
            'clustering': asdict(self.clustering),
            'insights': asdict(self.insights),
            'alerts': {
                'enabled': self.alerts.enabled,
                'watched_species': list(self.alerts.watched_species),
                'overdue_multiplier': self.alerts.overdue_multiplier,
            },
        }

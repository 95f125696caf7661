"""
Detection normalization.

Raw detection records arrive in several shapes (BirdNET-Go's separate
``date``/``time`` fields, a single ISO timestamp under one of a handful of
names, alternate species keys). The priority order for every concept is
declared once, as data, in the tuples below and walked by ``normalize_record``.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import datetime, date, time as dt_time
from typing import Any, Optional, List

from config import NormalizerConfig
from exceptions import InvalidInputError, NormalizationError
from models import Detection
from utils import to_local_naive

logger = logging.getLogger(__name__)

# A tuple entry is a combined (date, time) pair; a string entry is a single field.
TIMESTAMP_SOURCES = (
    ("date", "time"),
    "begin_time",
    "beginTime",
    "timestamp",
    "date",
    "DateTime",
    "created_at",
)

SPECIES_KEYS = (
    "commonName",
    "common_name",
    "species",
    "label",
    "bird_name",
    "name",
    "scientificName",
    "scientific_name",
)

CONFIDENCE_KEYS = ("confidence", "avgConfidence")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse one timestamp value; returns None when it is not a usable date."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, dt_time())
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def _timestamp_from_source(record: Mapping, source) -> Optional[datetime]:
    if isinstance(source, tuple):
        date_key, time_key = source
        date_part, time_part = record.get(date_key), record.get(time_key)
        if not date_part or not time_part:
            return None
        if isinstance(date_part, str) and isinstance(time_part, str):
            return parse_timestamp(f"{date_part.strip()}T{time_part.strip()}")
        return None
    return parse_timestamp(record.get(source))


def extract_timestamp(record: Mapping) -> Optional[datetime]:
    """First timestamp that parses, walking TIMESTAMP_SOURCES in order."""
    for source in TIMESTAMP_SOURCES:
        parsed = _timestamp_from_source(record, source)
        if parsed is not None:
            return parsed
    return None


def extract_species(record: Mapping, unknown: str = "Unknown") -> str:
    """First non-blank species name, walking SPECIES_KEYS in order."""
    for key in SPECIES_KEYS:
        value = record.get(key)
        if value is None:
            continue
        name = value if isinstance(value, str) else str(value)
        if name.strip():
            return name
    return unknown


def extract_confidence(record: Mapping) -> float:
    """First numeric confidence, clamped to [0, 1]; missing or invalid -> 0."""
    for key in CONFIDENCE_KEYS:
        value = record.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            continue
        if math.isnan(confidence):
            return 0.0
        return min(1.0, max(0.0, confidence))
    return 0.0


def normalize_record(record: Any, now: datetime,
                     config: Optional[NormalizerConfig] = None) -> Detection:
    """
    Canonicalize one raw record into a Detection.

    Args:
        record: Raw mapping (or an already-normalized Detection)
        now: Reference instant used when no timestamp parses under the "now" policy
        config: Normalizer settings (policy, timezone, unknown-species sentinel)

    Returns:
        Normalized Detection

    Raises:
        InvalidInputError: record is not a mapping
        NormalizationError: no timestamp parses and the policy is "reject"
    """
    config = config or NormalizerConfig()

    if isinstance(record, Detection):
        return record
    if not isinstance(record, Mapping):
        raise InvalidInputError(f"Detection record must be a mapping, got {type(record).__name__}")

    timestamp = extract_timestamp(record)
    if timestamp is None:
        if config.unparseable_policy == "reject":
            raise NormalizationError(f"No parseable timestamp in record: {dict(record)!r}")
        logger.warning("Record has no parseable timestamp; stamping reference time")
        timestamp = now

    return Detection(
        species=extract_species(record, config.unknown_species),
        timestamp=to_local_naive(timestamp, config.timezone),
        confidence=extract_confidence(record),
    )


def normalize_records(records: Any, now: Optional[datetime] = None,
                      config: Optional[NormalizerConfig] = None) -> List[Detection]:
    """
    Normalize a collection of raw records.

    Records rejected under the "reject" policy are dropped and counted; any
    structurally invalid input raises InvalidInputError.
    """
    config = config or NormalizerConfig()
    if records is None or isinstance(records, (str, bytes, bytearray, Mapping)) \
            or not isinstance(records, Iterable):
        raise InvalidInputError(
            f"Detections must be a collection of records, got {type(records).__name__}")

    now = to_local_naive(now, config.timezone) if now is not None else datetime.now()
    detections = []
    rejected = 0

    for record in records:
        try:
            detections.append(normalize_record(record, now, config))
        except NormalizationError as e:
            rejected += 1
            logger.debug(f"Rejected record: {e}")

    if rejected:
        logger.warning(f"Dropped {rejected} record(s) with unparseable timestamps")

    return detections

"""
Migratory species catalog.

A data table keyed by exact common name that says how a species moves
(migratory, partial migrant, resident) and, where known, its typical spring
arrival and fall departure day-of-year for a mid-latitude eastern North
American site. Species missing from the table fall back to a temporal rule
when first/last-seen dates are available, and otherwise are treated as
non-migratory.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from models import MovementClass, LateArrival, SpeciesStat
from utils import day_of_year, date_from_day_of_year

logger = logging.getLogger(__name__)

ARRIVAL_GRACE_DAYS = 15
SPRING_CUTOFF_DAY = 180
MIN_ABSENCE_DAYS = 90


@dataclass(frozen=True)
class CatalogEntry:
    name: str
    movement: MovementClass
    spring_arrival: Optional[int] = None  # day of year
    fall_departure: Optional[int] = None  # day of year


_M = MovementClass.MIGRATORY
_P = MovementClass.PARTIAL
_R = MovementClass.RESIDENT

# (name, movement, spring arrival day, fall departure day)
DEFAULT_MIGRANTS = (
    ("Ruby-throated Hummingbird", _M, 105, 245),
    ("Baltimore Oriole", _M, 100, 250),
    ("Yellow-rumped Warbler", _M, 91, 305),
    ("White-throated Sparrow", _P, 79, 320),
    ("Common Yellowthroat", _M, 115, 260),
    ("Ovenbird", _M, 120, 255),
    ("Black-and-white Warbler", _M, 110, 250),
    ("Wood Thrush", _M, 125, 260),
    ("American Robin", _P, 70, 300),
    ("Cedar Waxwing", _P, 85, 290),
    ("Dark-eyed Junco", _P, 90, 288),
    ("American Goldfinch", _P, 80, 290),
    ("Indigo Bunting", _M, 125, 265),
    ("Rose-breasted Grosbeak", _M, 115, 260),
    ("Gray Catbird", _M, 120, 275),
    ("Eastern Kingbird", _M, 130, 255),
    ("Eastern Phoebe", _M, 95, 300),
    ("Eastern Wood-Pewee", _M, 135, 260),
    ("Great Crested Flycatcher", _M, 125, 260),
    ("Chimney Swift", _M, 118, 275),
    ("Barn Swallow", _M, 115, 270),
    ("Tree Swallow", _M, 100, 280),
    ("Northern Rough-winged Swallow", _M, 110, 270),
    ("Purple Martin", _M, 105, 255),
    ("Yellow-billed Cuckoo", _M, 125, 270),
    ("Black-billed Cuckoo", _M, 130, 265),
    ("Common Nighthawk", _M, 135, 260),
    ("Killdeer", _P, 85, 305),
    ("Spotted Sandpiper", _M, 120, 270),
    ("Bay-breasted Warbler", _M, 135, 260),
    ("Worm-eating Warbler", _M, 125, 265),
    ("Louisiana Waterthrush", _M, 100, 245),
    ("Northern Waterthrush", _M, 120, 265),
    ("Yellow-throated Warbler", _M, 105, 270),
    ("Cape May Warbler", _M, 130, 270),
    ("Yellow-throated Vireo", _M, 120, 265),
    ("Eastern Bluebird", _P, 80, 310),
    ("Gray-cheeked Thrush", _M, 135, 260),
    ("Chipping Sparrow", _M, 100, 295),
    ("Purple Finch", _P, 90, 300),
    ("Red-breasted Nuthatch", _P, 85, 305),
    ("Hermit Thrush", _P, None, None),
)

DEFAULT_RESIDENTS = (
    "Northern Cardinal", "Black-capped Chickadee", "Carolina Chickadee",
    "Tufted Titmouse", "White-breasted Nuthatch", "Carolina Wren",
    "Red-bellied Woodpecker", "Downy Woodpecker", "Hairy Woodpecker",
    "Pileated Woodpecker", "Barred Owl", "Great Horned Owl", "Eastern Screech-Owl",
    "Turkey Vulture", "Red-tailed Hawk", "Red-shouldered Hawk", "Cooper's Hawk",
    "Mourning Dove", "Rock Pigeon", "House Sparrow", "European Starling",
    "House Finch", "Blue Jay", "Common Grackle", "Brown-headed Cowbird",
    "Song Sparrow",
)


def default_entries() -> List[CatalogEntry]:
    entries = [CatalogEntry(name, movement, spring, fall)
               for name, movement, spring, fall in DEFAULT_MIGRANTS]
    entries.extend(CatalogEntry(name, _R) for name in DEFAULT_RESIDENTS)
    return entries


class SpeciesCatalog:
    """Lookup table of species movement classes keyed by exact common name."""

    def __init__(self, entries: Optional[Iterable[CatalogEntry]] = None):
        if entries is None:
            entries = default_entries()
        self._entries: Dict[str, CatalogEntry] = {entry.name: entry for entry in entries}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def lookup(self, name: str) -> Optional[CatalogEntry]:
        return self._entries.get(name)

    def movement_for(self, name: str) -> MovementClass:
        entry = self._entries.get(name)
        return entry.movement if entry else MovementClass.UNKNOWN

    def is_migratory(self, name: str, first_seen: Optional[datetime] = None,
                     last_seen: Optional[datetime] = None) -> bool:
        """
        Whether a species should be treated as a migrant.

        Catalog entries win. For unlisted species with a first/last-seen pair,
        a yearly absence of more than 90 days marks a migrant. Anything else
        is conservatively non-migratory.
        """
        entry = self._entries.get(name)
        if entry is not None:
            return entry.movement in (MovementClass.MIGRATORY, MovementClass.PARTIAL)

        if first_seen is not None and last_seen is not None:
            present_span = day_of_year(last_seen) - day_of_year(first_seen)
            return 365 - present_span > MIN_ABSENCE_DAYS

        return False

    def late_arrivals(self, stats: Iterable[SpeciesStat], today: date) -> List[LateArrival]:
        """
        Spring migrants whose arrival window has passed without a detection this year.

        A species is late once ``spring_arrival + 15`` days have passed, until
        the end of June. Sorted by days late, most overdue first.
        """
        today_day = day_of_year(today)
        if today_day >= SPRING_CUTOFF_DAY:
            return []

        seen_this_year = {s.name for s in stats if s.last_seen.year >= today.year}
        late = []
        for entry in self._entries.values():
            if entry.spring_arrival is None or entry.name in seen_this_year:
                continue
            latest_day = entry.spring_arrival + ARRIVAL_GRACE_DAYS
            if today_day > latest_day:
                late.append(LateArrival(
                    species=entry.name,
                    expected_date=date_from_day_of_year(entry.spring_arrival, today.year),
                    days_late=today_day - latest_day,
                ))

        late.sort(key=lambda a: (-a.days_late, a.species))
        logger.debug(f"{len(late)} catalog species are late this spring")
        return late

"""
Destination regions.

One table maps loose destination wording ("Europe", "japan", "somewhere with
a beach") onto airport codes. Each region carries two code sets:

- match_codes: every airport we accept as "in" the region when checking a
  found flight against the alert's wording.
- search_codes: a short curated list we actually query, to keep the number
  of provider calls per alert small.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Region:
    name: str
    keywords: tuple[str, ...]
    match_codes: frozenset[str]
    search_codes: tuple[str, ...] = ()


_CARIBBEAN = frozenset({"SJU", "MBJ", "NAS", "PUJ", "STT", "AUA", "CUR", "BGI", "GCM"})
_MEXICO = frozenset({"MEX", "CUN", "GDL", "PVR", "SJD", "MZT", "ACA"})
_HAWAII = frozenset({"HNL", "OGG", "KOA", "LIH"})

BEACH_CODES = _CARIBBEAN | _MEXICO | _HAWAII | {"MIA", "TPA"}

# Insertion order is the lookup order: the first region whose keyword
# appears in the text wins.
REGIONS: dict[str, Region] = {
    "europe": Region(
        name="Europe",
        keywords=("europe",),
        match_codes=frozenset({
            "LHR", "CDG", "FCO", "BCN", "AMS", "FRA", "MAD", "MUC", "ZRH", "VIE",
            "DUB", "LIS", "ATH", "PRG", "BUD", "WAW", "CPH", "OSL", "ARN", "HEL",
            "BRU", "MXP", "VCE", "NAP", "EDI", "MAN", "KEF",
        }),
        search_codes=("LHR", "CDG", "FCO", "BCN", "AMS", "DUB", "LIS"),
    ),
    "asia": Region(
        name="Asia",
        keywords=("asia",),
        match_codes=frozenset({
            "NRT", "HND", "ICN", "HKG", "SIN", "BKK", "TPE", "PVG", "PEK", "KIX",
            "MNL", "SGN", "HAN", "KUL", "DPS", "DEL", "BOM", "CGK",
        }),
        search_codes=("NRT", "ICN", "HKG", "SIN", "BKK", "TPE"),
    ),
    "japan": Region(
        name="Japan",
        keywords=("japan",),
        match_codes=frozenset({"NRT", "HND", "KIX", "FUK", "CTS", "NGO", "OKA"}),
        search_codes=("NRT", "HND", "KIX"),
    ),
    "mexico": Region(
        name="Mexico",
        keywords=("mexico",),
        match_codes=_MEXICO,
        search_codes=("CUN", "MEX", "PVR", "SJD"),
    ),
    "caribbean": Region(
        name="Caribbean",
        keywords=("caribbean",),
        match_codes=_CARIBBEAN,
        search_codes=("SJU", "MBJ", "NAS", "PUJ"),
    ),
    "hawaii": Region(
        name="Hawaii",
        keywords=("hawaii",),
        match_codes=_HAWAII,
        search_codes=("HNL", "OGG", "KOA"),
    ),
    "beach": Region(
        name="Beach",
        keywords=("beach",),
        match_codes=BEACH_CODES,
        search_codes=("CUN", "SJU", "MBJ", "HNL", "PVR"),
    ),
    "tropical": Region(
        name="Tropical",
        keywords=("tropical",),
        match_codes=BEACH_CODES,
        search_codes=("CUN", "SJU", "MBJ", "HNL", "BKK", "DPS"),
    ),
    "south_america": Region(
        name="South America",
        keywords=("south america",),
        match_codes=frozenset({"GRU", "EZE", "SCL", "BOG", "LIM", "GIG", "MVD", "UIO"}),
        search_codes=("GRU", "EZE", "SCL", "BOG", "LIM"),
    ),
    "canada": Region(
        name="Canada",
        keywords=("canada",),
        match_codes=frozenset({"YYZ", "YVR", "YUL", "YYC", "YOW"}),
        search_codes=("YYZ", "YVR", "YUL"),
    ),
    "australia": Region(
        name="Australia",
        keywords=("australia",),
        match_codes=frozenset({"SYD", "MEL", "BNE", "PER", "ADL"}),
        search_codes=("SYD", "MEL", "BNE"),
    ),
    "central_america": Region(
        name="Central America",
        keywords=("central america",),
        match_codes=frozenset({"PTY", "SJO", "GUA", "SAL", "MGA"}),
        search_codes=("PTY", "SJO", "GUA"),
    ),
}

FLEXIBLE_KEYWORDS = ("anywhere", "flexible", "open")
WARM_KEYWORDS = ("warm",)

ANYWHERE_DESTINATIONS = ["LHR", "CDG", "CUN", "NRT", "FCO", "MEX", "HNL"]
DEFAULT_DESTINATIONS = ["LHR", "CDG", "CUN", "NRT", "FCO"]


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def find_region(text: Optional[str], searchable_only: bool = False) -> Optional[Region]:
    """Return the first region mentioned in the text, or None."""
    normalized = (text or "").lower()
    for region in REGIONS.values():
        if searchable_only and not region.search_codes:
            continue
        if _contains_any(normalized, region.keywords):
            return region
    return None


def matches_destination_text(destination_code: str, text: Optional[str]) -> bool:
    """
    Check whether an airport fits a free-text destination description.

    Advisory only: nothing drops flights on its answer.
    """
    normalized = (text or "").lower()
    code = (destination_code or "").upper()

    for region in REGIONS.values():
        if _contains_any(normalized, region.keywords) and code in region.match_codes:
            return True

    if _contains_any(normalized, FLEXIBLE_KEYWORDS):
        return True

    if _contains_any(normalized, WARM_KEYWORDS):
        return code in BEACH_CODES

    return False


def get_destinations_for_alert(alert) -> list[str]:
    """
    Pick the airports to search for an alert.

    A structured destination code always wins. Otherwise the free text is
    matched against the regions' curated search lists, then the flexible
    keywords, then a fixed default set.
    """
    if alert.destination_code:
        return [alert.destination_code.upper()]

    text = (alert.destination_text or "").lower().strip()

    region = find_region(text, searchable_only=True)
    if region:
        return list(region.search_codes)

    if not text or _contains_any(text, FLEXIBLE_KEYWORDS):
        return list(ANYWHERE_DESTINATIONS)

    return list(DEFAULT_DESTINATIONS)

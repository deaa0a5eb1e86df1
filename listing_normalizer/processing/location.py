"""
Description:
    Location Resolver.

    Turns the location text scraped from each listing site into
    district / municipality / parish + coordinates.

    Flow:
    1. A per-platform strategy splits the raw location into ordered parts and
       resolves them against the Gazetteer (parish -> municipality -> district).
    2. If the strategy found no coordinates, the geocoder is asked with whatever
       was parsed (or the raw text when nothing was). Parsed names win over
       geocoded names, geocoded coordinates are always taken.
    3. Nothing ever raises: the worst case is an all-None ResolvedLocation.
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from listing_normalizer.processing.gazetteer import Gazetteer, GazetteerEntry
from listing_normalizer.processing.models import ResolvedLocation
from listing_normalizer.utils.clean_text import AddressCleaner

logger = logging.getLogger(__name__)

LocationQuery = Union[str, Sequence[str], Mapping[str, object]]
Strategy = Callable[[LocationQuery, Gazetteer], Optional[ResolvedLocation]]


def query_text(query: LocationQuery) -> str:
    """Flattens any query shape back to "a, b, c" text."""
    if isinstance(query, str):
        return query.strip()
    if isinstance(query, Mapping):
        raw = query.get('raw')
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
        return query_text(query.get('parts') or [])
    if isinstance(query, (list, tuple)):
        return ', '.join(str(part).strip() for part in query if isinstance(part, str) and part.strip())
    return ""


def query_parts(query: LocationQuery) -> List[str]:
    """Ordered address parts: pre-split parts are used as given, text is split on commas."""
    if isinstance(query, Mapping):
        parts = query.get('parts')
        if isinstance(parts, (list, tuple)) and parts:
            return query_parts(list(parts))
        return AddressCleaner.split_parts(query.get('raw'))
    if isinstance(query, (list, tuple)):
        return [part.strip() for part in query if isinstance(part, str) and part.strip()]
    return AddressCleaner.split_parts(query)


def _from_entry(entry: GazetteerEntry, parish: Optional[str],
                municipality: Optional[str] = None) -> ResolvedLocation:
    return ResolvedLocation(
        district=entry.district,
        municipality=municipality or entry.municipality,
        parish=parish or None,
        lat=entry.lat,
        lng=entry.lng,
    )


# --- PLATFORM STRATEGIES ---

def comma_two_part(query: LocationQuery, gazetteer: Gazetteer) -> Optional[ResolvedLocation]:
    """
    "bairro, concelho" or a single name (OLX style).

    Two or more parts: the first as parish, else the second as municipality.
    Then the first part alone: parish, else municipality. No district step;
    returns None when nothing matched.
    """
    parts = query_parts(query_text(query))
    if not parts:
        return None

    if len(parts) >= 2:
        first, second = parts[0], parts[1]
        entry = gazetteer.find(first)
        if entry:
            return _from_entry(entry, parish=first)
        entry = gazetteer.lookup_by_municipality(second)
        if entry:
            return _from_entry(entry, parish=first)

    entry = gazetteer.find(parts[0])
    if entry:
        return _from_entry(entry, parish=parts[0])

    entry = gazetteer.lookup_by_municipality(parts[0])
    if entry:
        return _from_entry(entry, parish=None)

    return None


def positional(query: LocationQuery, gazetteer: Gazetteer) -> Optional[ResolvedLocation]:
    """
    "freguesia, [..,] concelho, distrito" (Imovirtual style).

    First part is the parish, second-to-last the municipality and last the
    district (with 3+ parts). The parsed parish is always kept; when nothing
    matches the positional names come back with no coordinates.
    """
    parts = query_parts(query)
    if not parts:
        return None

    district = municipality = None
    parish = parts[0]
    if len(parts) >= 3:
        district, municipality = parts[-1], parts[-2]
    elif len(parts) == 2:
        municipality = parts[1]

    entry = gazetteer.find(parish)
    if entry:
        return _from_entry(entry, parish=parish)

    if municipality:
        entry = gazetteer.lookup_by_municipality(municipality)
        if entry:
            return _from_entry(entry, parish=parish)

    if district:
        entry = gazetteer.lookup_by_district(district)
        if entry:
            # District match: keep the parsed municipality name if there is one
            return _from_entry(entry, parish=parish, municipality=municipality)

    return ResolvedLocation(district=district, municipality=municipality, parish=parish)


STRATEGIES: Dict[str, Strategy] = {
    'olx': comma_two_part,
    'custojusto': comma_two_part,
    'casasapo': comma_two_part,
    'imovirtual': positional,
    'idealista': positional,
}


def register_strategy(platform: str, strategy: Strategy) -> None:
    STRATEGIES[platform.lower()] = strategy


class LocationResolver:
    """
    Resolves LocationQuery values against a Gazetteer, with an optional
    geocoder (anything exposing `geocode(text) -> ResolvedLocation | None`).
    """

    def __init__(self, gazetteer: Gazetteer, geocoder=None,
                 strategies: Optional[Dict[str, Strategy]] = None):
        self.gazetteer = gazetteer
        self.geocoder = geocoder
        self.strategies = strategies if strategies is not None else STRATEGIES

    def parse(self, query: LocationQuery, platform: str = 'olx') -> Optional[ResolvedLocation]:
        """Gazetteer-only resolution. None when the platform strategy found nothing."""
        strategy = self.strategies.get((platform or '').lower())
        if strategy is None:
            logger.debug(f"No location strategy for platform '{platform}'")
            return None
        return strategy(query, self.gazetteer)

    def resolve(self, query: LocationQuery, platform: str = 'olx',
                use_geocoding: bool = True) -> ResolvedLocation:
        processed = self.parse(query, platform)

        if processed and processed.has_coordinates:
            return processed

        fallback = processed or ResolvedLocation()
        if not use_geocoding or self.geocoder is None:
            return fallback

        if processed:
            search_text = ', '.join(
                part for part in (processed.parish, processed.municipality, processed.district) if part
            )
        else:
            search_text = query_text(query)

        if not search_text:
            return fallback

        geocoded = self.geocoder.geocode(search_text)
        if geocoded is None or not geocoded.has_coordinates:
            logger.debug(f"Location '{search_text}' left without coordinates")
            return fallback

        return ResolvedLocation(
            district=fallback.district or geocoded.district,
            municipality=fallback.municipality or geocoded.municipality,
            parish=fallback.parish or geocoded.parish,
            lat=geocoded.lat,
            lng=geocoded.lng,
        )

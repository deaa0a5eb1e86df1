"""
Description:
    Geocoding Port (Nominatim / OpenStreetMap via geopy).

    Responsibilities:
    1. Free-text forward geocoding restricted to Portugal (", Portugal" suffix).
    2. Caching by normalized query text in an explicitly owned, bounded
       GeocodeCache (LRU with optional TTL). Empty answers are cached as misses,
       transport errors are not.
    3. Failure isolation: any geopy or parsing error is logged and reported as
       None. Callers treat None as a normal outcome.

    Not thread-safe. One request per cache miss, no retries, no coalescing of
    identical in-flight requests: a multi-threaded caller must add per-key
    coalescing and lock the cache.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional, Tuple

from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

from listing_normalizer.processing.models import ResolvedLocation
from listing_normalizer.settings import settings
from listing_normalizer.utils.clean_text import normalize_name

logger = logging.getLogger(__name__)

# Sentinel: "not in cache" (a cached miss is stored as None)
MISSING = object()


class GeocodeCache:
    """LRU cache of geocoding answers keyed by normalized query text."""

    def __init__(self, capacity: int = 1024, ttl_seconds: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds or None
        self._clock = clock
        self._data: "OrderedDict[str, Tuple[float, Optional[ResolvedLocation]]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str, default: Any = MISSING) -> Any:
        item = self._data.get(key)
        if item is None:
            self.misses += 1
            return default

        stored_at, value = item
        if self.ttl_seconds is not None and self._clock() - stored_at > self.ttl_seconds:
            del self._data[key]
            self.misses += 1
            return default

        self._data.move_to_end(key)
        self.hits += 1
        return value

    def put(self, key: str, value: Optional[ResolvedLocation]) -> None:
        self._data[key] = (self._clock(), value)
        self._data.move_to_end(key)
        while len(self._data) > self.capacity:
            evicted, _ = self._data.popitem(last=False)
            logger.debug(f"Geocode cache full, evicted '{evicted}'")

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def stats(self) -> Dict[str, int]:
        return {'size': len(self._data), 'hits': self.hits, 'misses': self.misses}


def parse_candidate(raw: Dict[str, Any]) -> ResolvedLocation:
    """
    Maps one Nominatim search candidate to a ResolvedLocation.

    state/region -> district, city/town/municipality -> municipality,
    suburb/village/neighbourhood -> parish.
    """
    address = raw.get('address') or {}
    return ResolvedLocation(
        district=address.get('state') or address.get('region') or None,
        municipality=address.get('city') or address.get('town') or address.get('municipality') or None,
        parish=address.get('suburb') or address.get('village') or address.get('neighbourhood') or None,
        lat=float(raw['lat']),
        lng=float(raw['lon']),
    )


class NominatimGeocoder:
    """
    GeocodingPort backed by geopy's Nominatim client.

    The resolver only relies on `geocode(text)`, so any object exposing that
    method (e.g. a test double) can take this one's place.
    """

    def __init__(self, cache: Optional[GeocodeCache] = None, geolocator=None,
                 user_agent: Optional[str] = None, timeout: Optional[float] = None,
                 min_delay_seconds: Optional[float] = None, country_suffix: Optional[str] = None):
        self.cache = cache if cache is not None else GeocodeCache(
            capacity=settings.GEOCODE_CACHE_SIZE,
            ttl_seconds=settings.GEOCODE_CACHE_TTL_SECONDS,
        )
        self.country_suffix = settings.GEOCODE_COUNTRY_SUFFIX if country_suffix is None else country_suffix

        if geolocator is None:
            if user_agent is None and settings.user_agent_is_default:
                logger.warning(
                    "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
                    "This may violate Nominatim usage policy."
                )
            geolocator = Nominatim(
                user_agent=user_agent or settings.NOMINATIM_USER_AGENT,
                timeout=timeout if timeout is not None else settings.NOMINATIM_TIMEOUT,
            )

        # Single attempt per miss; errors surface here and are handled in geocode()
        self._geocode_service = RateLimiter(
            geolocator.geocode,
            min_delay_seconds=settings.NOMINATIM_MIN_INTERVAL if min_delay_seconds is None else min_delay_seconds,
            max_retries=0,
            swallow_exceptions=False,
        )
        self.requests_made = 0

    def geocode(self, free_text: str) -> Optional[ResolvedLocation]:
        """Returns the first candidate for `free_text`, or None on miss / failure."""
        cache_key = normalize_name(free_text)
        if not cache_key:
            return None

        cached = self.cache.get(cache_key)
        if cached is not MISSING:
            logger.debug(f"Geocode cache hit: '{cache_key}'")
            return cached

        query = f"{free_text.strip()}{self.country_suffix}"
        self.requests_made += 1
        try:
            location = self._geocode_service(query, exactly_one=True, addressdetails=True)
            if location is None:
                logger.info(f"No geocoding candidates for '{query}'")
                self.cache.put(cache_key, None)
                return None
            result = parse_candidate(location.raw)
        except GeopyError as e:
            logger.warning(f"Geocoding failed for '{query}': {e}")
            return None
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unreadable geocoding answer for '{query}': {e}")
            return None

        self.cache.put(cache_key, result)
        return result

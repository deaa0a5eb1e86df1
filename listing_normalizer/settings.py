import logging
import os
from typing import Optional

# Environment-driven configuration for the normalizer and its geocoder.

logger = logging.getLogger(__name__)

FALLBACK_USER_AGENT = "pt-listing-normalizer/0.1"


def _as_bool(val: Optional[str], default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: Optional[str], default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        logger.warning(f"Invalid integer setting {val!r}; using {default}.")
        return default


def _as_float(val: Optional[str], default: float) -> float:
    try:
        return float(val) if val is not None else default
    except ValueError:
        logger.warning(f"Invalid float setting {val!r}; using {default}.")
        return default


class Settings:
    def __init__(self) -> None:
        self.NOMINATIM_USER_AGENT: str = os.getenv("NOMINATIM_USER_AGENT") or FALLBACK_USER_AGENT
        self.NOMINATIM_TIMEOUT: float = _as_float(os.getenv("NOMINATIM_TIMEOUT"), 10.0)
        # Nominatim usage policy: at most one request per second
        self.NOMINATIM_MIN_INTERVAL: float = _as_float(os.getenv("NOMINATIM_MIN_INTERVAL"), 1.1)
        self.GEOCODE_COUNTRY_SUFFIX: str = os.getenv("GEOCODE_COUNTRY_SUFFIX", ", Portugal")
        self.GEOCODE_CACHE_SIZE: int = _as_int(os.getenv("GEOCODE_CACHE_SIZE"), 1024)
        # 0 disables expiry (entries live as long as the cache object)
        self.GEOCODE_CACHE_TTL_SECONDS: int = _as_int(os.getenv("GEOCODE_CACHE_TTL_SECONDS"), 0)
        self.USE_GEOCODING: bool = _as_bool(os.getenv("USE_GEOCODING"), True)
        self.GAZETTEER_PATH: Optional[str] = os.getenv("GAZETTEER_PATH") or None

    @property
    def user_agent_is_default(self) -> bool:
        return self.NOMINATIM_USER_AGENT == FALLBACK_USER_AGENT


settings = Settings()

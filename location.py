import logging
import time
from typing import Callable, Optional

from errors import CacheCorrupted

logger = logging.getLogger("location_resolver")

LOCATION_CACHE = "fips-code.json"


class LocationResolver:
    """
    Picks the county FIPS code for this run.

    Order: explicit override, a cached code younger than `ttl_sec`, a live
    geolocation + geocoding lookup, and finally the cached code however old.
    Returns None when nothing works; never raises.
    """

    def __init__(
        self,
        cache,
        geolocator,
        geocoder,
        ttl_sec: float = 15 * 60,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.geolocator = geolocator
        self.geocoder = geocoder
        self.ttl_sec = ttl_sec
        self.clock = clock

    def resolve(self, override: Optional[str] = None) -> Optional[str]:
        if override:
            return override

        fallback_id = None
        now = self.clock()

        cached = self._read_cached()
        if cached:
            fallback_id = cached.get("id")
            updated_at = cached.get("updatedAt")
            if fallback_id and isinstance(updated_at, (int, float)):
                if now - updated_at / 1000.0 < self.ttl_sec:
                    return fallback_id

        try:
            location = self.geolocator.current_location()
            fips = self.geocoder.county_fips(location.latitude, location.longitude)
        except Exception as exc:
            logger.warning(f"Could not fetch FIPS code: {exc}")
            return fallback_id

        try:
            self.cache.write(LOCATION_CACHE, {"id": fips, "updatedAt": int(now * 1000)})
        except OSError as exc:
            logger.warning("Could not cache FIPS code %s: %s", fips, exc)
        return fips

    def _read_cached(self) -> Optional[dict]:
        try:
            return self.cache.read(LOCATION_CACHE)
        except CacheCorrupted as exc:
            logger.warning("Ignoring cached FIPS code: %s", exc)
            return None

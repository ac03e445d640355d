import json
import logging
from typing import Optional
from urllib.error import URLError
from urllib.request import Request, urlopen

from errors import LocationUnavailable
from schemas import LatLon

logger = logging.getLogger("geolocation_source")


class StaticLocationSource:
    """Fixed coordinates from configuration."""

    def __init__(self, latitude: Optional[float], longitude: Optional[float]):
        self.latitude = latitude
        self.longitude = longitude

    def current_location(self) -> LatLon:
        if self.latitude is None or self.longitude is None:
            raise LocationUnavailable("No coordinates configured")
        return LatLon(latitude=float(self.latitude), longitude=float(self.longitude))


class IpGeolocationSource:
    """
    Coarse location from the public IP address. City-level accuracy is
    plenty for a county lookup.
    """

    def __init__(self, api_url: str = "http://ip-api.com/json", timeout: float = 10.0):
        self.api_url = api_url
        self.timeout = timeout

    def current_location(self) -> LatLon:
        try:
            req = Request(self.api_url)
            req.add_header("User-Agent", "CovidRiskWidget/1.0")
            with urlopen(req, timeout=self.timeout) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except URLError as e:
            raise LocationUnavailable(f"IP geolocation failed: {e.reason}") from e
        except (ValueError, OSError) as e:
            raise LocationUnavailable(f"IP geolocation response unreadable: {e}") from e

        if not isinstance(payload, dict) or payload.get("status", "success") != "success":
            raise LocationUnavailable(f"IP geolocation refused: {payload}")
        lat = payload.get("lat")
        lon = payload.get("lon")
        if lat is None or lon is None:
            raise LocationUnavailable("IP geolocation returned no coordinates")
        return LatLon(latitude=float(lat), longitude=float(lon))


class ChainedLocationSource:
    """Tries each source in order; the first that answers wins."""

    def __init__(self, *sources):
        self.sources = [s for s in sources if s is not None]

    def current_location(self) -> LatLon:
        errors = []
        for source in self.sources:
            try:
                return source.current_location()
            except LocationUnavailable as exc:
                logger.debug("%s unavailable: %s", type(source).__name__, exc)
                errors.append(str(exc))
        raise LocationUnavailable("; ".join(errors) or "No location sources configured")

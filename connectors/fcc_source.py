import json
import logging
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import ValidationError

from documents import CensusAreaResponse
from errors import GeocodingError

logger = logging.getLogger("fcc_source")


class FccAreaSource:
    """
    Resolves a coordinate to a county FIPS code with the FCC Area API.

    This product uses the FCC Data API but is not endorsed or certified by the FCC.
    """

    def __init__(self, api_url: str = "https://geo.fcc.gov/api", timeout: float = 10.0):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def area_url(self, latitude: float, longitude: float) -> str:
        query = urlencode({"lat": latitude, "lon": longitude, "format": "json"})
        return f"{self.api_url}/census/area?{query}"

    def county_fips(self, latitude: float, longitude: float) -> str:
        url = self.area_url(latitude, longitude)
        try:
            req = Request(url)
            req.add_header("User-Agent", "CovidRiskWidget/1.0")
            with urlopen(req, timeout=self.timeout) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except HTTPError as e:
            raise GeocodingError(f"FCC Area API HTTP Error: {e.code}") from e
        except URLError as e:
            raise GeocodingError(f"FCC Area API Connection Error: {e.reason}") from e
        except (ValueError, OSError) as e:
            raise GeocodingError(f"FCC Area API response unreadable: {e}") from e

        try:
            area = CensusAreaResponse.model_validate(payload)
        except ValidationError as e:
            raise GeocodingError(f"Unexpected FCC Area API payload: {e}") from e
        if not area.results or not area.results[0].county_fips:
            raise GeocodingError(f"No county found at {latitude},{longitude}")

        fips = area.results[0].county_fips
        logger.debug("Resolved %s,%s to county %s", latitude, longitude, fips)
        return fips

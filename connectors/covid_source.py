import json
import logging
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

logger = logging.getLogger("covid_source")


class CovidActNowSource:
    """
    Fetches county time-series documents from the COVID Act Now API.
    Returns None on any transport or decode failure; validation is the caller's job.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.covidactnow.org/v2",
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def timeseries_url(self, fips: str) -> str:
        query = urlencode({"apiKey": self.api_key})
        return f"{self.api_url}/county/{quote(str(fips))}.timeseries.json?{query}"

    def redact(self, text: str) -> str:
        if not self.api_key:
            return text
        return text.replace(self.api_key, "***")

    def fetch_timeseries(self, fips: str) -> Optional[dict]:
        url = self.timeseries_url(fips)
        try:
            req = Request(url)
            req.add_header("User-Agent", "CovidRiskWidget/1.0")
            with urlopen(req, timeout=self.timeout) as response:
                payload = json.loads(response.read().decode("utf-8"))
        except HTTPError as e:
            logger.warning(f"COVID Act Now API HTTP Error {e.code} for {self.redact(url)}")
            return None
        except URLError as e:
            logger.warning(f"COVID Act Now API Connection Error: {e.reason}")
            return None
        except (ValueError, OSError) as e:
            logger.warning("COVID Act Now response unreadable for %s: %s", self.redact(url), e)
            return None
        except Exception as e:
            logger.error(f"COVID Act Now API Unexpected Error: {self.redact(str(e))}")
            return None

        if not isinstance(payload, dict):
            logger.warning("COVID Act Now returned %s instead of an object", type(payload).__name__)
            return None
        return payload

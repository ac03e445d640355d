import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

from pydantic import ValidationError

from adapter import MetricsAdapter
from documents import CountyTimeseries
from errors import UpstreamUnusable
from schemas import CacheEntry, MetricKey, MetricsBundle

logger = logging.getLogger("metrics_pipeline")


def historical_cache_name(fips: str) -> str:
    return f"fips-{fips}-historical-data.json"


def is_valid_document(document: Any) -> bool:
    if not isinstance(document, dict):
        return False
    try:
        CountyTimeseries.model_validate(document)
    except ValidationError as exc:
        logger.warning("COVID data failed validation: %s", exc.errors()[:3])
        return False
    return True


class MetricsPipeline:
    """
    Fetch → validate → cache → derive, for one county per call.

    A document that fails validation (or never arrives) is replaced by the
    cached copy if that copy is at most `max_age_sec` old; otherwise the run
    stops with UpstreamUnusable.
    """

    def __init__(
        self,
        source,
        cache,
        max_age_sec: float = 2 * 60 * 60,
        adapter: Optional[MetricsAdapter] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.cache = cache
        self.max_age_sec = max_age_sec
        self.adapter = adapter or MetricsAdapter()
        self.clock = clock

    def fetch(self, fips: str, metrics: Optional[Iterable[MetricKey]] = None) -> MetricsBundle:
        now = self.clock()
        cache_name = historical_cache_name(fips)
        document = self.source.fetch_timeseries(fips)

        if is_valid_document(document):
            entry = CacheEntry(payload=document, updated_at=int(now * 1000))
            try:
                self.cache.write(cache_name, {"json": entry.payload, "updatedAt": entry.updated_at})
                logger.info("COVID historical data for %s looks good, cached.", fips)
            except OSError as exc:
                logger.warning("Could not cache COVID historical data for %s: %s", fips, exc)
            from_cache = False
        else:
            entry = self._cached_entry(cache_name, fips)
            if entry.age_sec(now) > self.max_age_sec:
                raise UpstreamUnusable(fips, entry.updated_at)
            logger.warning("Using cached COVID historical data for %s: %s", fips, entry.updated_at)
            from_cache = True

        return self.adapter.derive(
            entry.payload,
            metrics=metrics,
            from_cache=from_cache,
            fetched_at=entry.updated_at,
        )

    def _cached_entry(self, cache_name: str, fips: str) -> CacheEntry:
        data: Optional[Dict[str, Any]] = self.cache.read(cache_name)
        if not data or not isinstance(data.get("json"), dict):
            raise UpstreamUnusable(fips)
        updated_at = data.get("updatedAt")
        if not isinstance(updated_at, (int, float)) or isinstance(updated_at, bool):
            raise UpstreamUnusable(fips)
        return CacheEntry(payload=data["json"], updated_at=int(updated_at))

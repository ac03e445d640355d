import json
import logging
import os
import time
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Iterable, Optional

from connectors.cache_store import FileCacheStore
from connectors.covid_source import CovidActNowSource
from connectors.fcc_source import FccAreaSource
from connectors.geolocation_source import (
    ChainedLocationSource,
    IpGeolocationSource,
    StaticLocationSource,
)
from errors import LocationUnresolved, UpstreamUnusable
from location import LocationResolver
from pipeline import MetricsPipeline
from schemas import MetricKey, RefreshOutcome, RefreshStatus

logger = logging.getLogger("widget_manager")

UPSTREAM_UNUSABLE_MESSAGE = "Couldn't connect to the server."

# --- Configuration ---

@dataclass
class WidgetConfig:
    covid_api_url: str = "https://api.covidactnow.org/v2"
    covid_api_key: str = ""
    fips_api_url: str = "https://geo.fcc.gov/api"
    ip_geolocation_url: str = "http://ip-api.com/json"
    cache_dir: str = os.path.join(os.path.expanduser("~"), ".cache", "covid-act-now")
    location_ttl_sec: float = 15 * 60
    data_max_age_sec: float = 2 * 60 * 60
    refresh_interval_sec: float = 4 * 60 * 60
    request_timeout_sec: float = 10.0
    default_fips: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    use_ip_geolocation: bool = True


ENV_OVERRIDES = {
    "COVID_API_KEY": "covid_api_key",
    "COVID_API_URL": "covid_api_url",
    "COVID_WIDGET_CACHE_DIR": "cache_dir",
    "COVID_WIDGET_FIPS": "default_fips",
}


def load_config(config_path: Optional[str] = "widget_config.json", env: Optional[Dict[str, str]] = None) -> WidgetConfig:
    """JSON file first (if it exists), then environment overrides."""
    env = os.environ if env is None else env
    values: Dict[str, Any] = {}
    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        known = {item.name for item in fields(WidgetConfig)}
        unknown = sorted(set(raw) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", config_path, ", ".join(unknown))
        values = {k: v for k, v in raw.items() if k in known}

    for env_name, attr in ENV_OVERRIDES.items():
        if env.get(env_name):
            values[attr] = env[env_name]

    if values.get("cache_dir"):
        values["cache_dir"] = os.path.expanduser(values["cache_dir"])
    return WidgetConfig(**values)


# --- Core Logic ---

class WidgetRefresher:
    """
    One widget refresh cycle: resolve the county, fetch its metrics.
    Every failure is folded into a RefreshOutcome; nothing escapes.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        pipeline: MetricsPipeline,
        refresh_interval_sec: float = 4 * 60 * 60,
        default_fips: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.resolver = resolver
        self.pipeline = pipeline
        self.refresh_interval_sec = refresh_interval_sec
        self.default_fips = default_fips
        self.clock = clock

    def refresh(
        self,
        override: Optional[str] = None,
        metrics: Optional[Iterable[MetricKey]] = None,
    ) -> RefreshOutcome:
        fips = None
        try:
            fips = self.resolver.resolve(override or self.default_fips)
            if not fips:
                return RefreshOutcome(
                    status=RefreshStatus.LOCATION_UNRESOLVED,
                    message=str(LocationUnresolved()),
                )
            logger.info(f"Using FIPS code: {fips}")

            bundle = self.pipeline.fetch(fips, metrics=metrics)
            return RefreshOutcome(
                status=RefreshStatus.OK,
                fips=fips,
                bundle=bundle,
                next_refresh_at=self.clock() + self.refresh_interval_sec,
            )
        except UpstreamUnusable as exc:
            logger.warning("%s", exc)
            return RefreshOutcome(
                status=RefreshStatus.UPSTREAM_UNUSABLE,
                fips=fips,
                message=UPSTREAM_UNUSABLE_MESSAGE,
            )
        except Exception as exc:
            logger.exception("Could not refresh widget data")
            return RefreshOutcome(
                status=RefreshStatus.UNEXPECTED_FAILURE,
                fips=fips,
                message=str(exc),
            )


# Factory to bootstrap
_singleton_manager = None


class Manager:
    def __init__(self, config: WidgetConfig, clock: Callable[[], float] = time.time):
        self.config = config
        self.cache = FileCacheStore(config.cache_dir)

        geolocator = ChainedLocationSource(
            StaticLocationSource(config.latitude, config.longitude),
            IpGeolocationSource(config.ip_geolocation_url, timeout=config.request_timeout_sec)
            if config.use_ip_geolocation else None,
        )
        self.resolver = LocationResolver(
            self.cache,
            geolocator,
            FccAreaSource(config.fips_api_url, timeout=config.request_timeout_sec),
            ttl_sec=config.location_ttl_sec,
            clock=clock,
        )
        self.source = CovidActNowSource(
            config.covid_api_key,
            api_url=config.covid_api_url,
            timeout=config.request_timeout_sec,
        )
        self.pipeline = MetricsPipeline(
            self.source,
            self.cache,
            max_age_sec=config.data_max_age_sec,
            clock=clock,
        )
        self.refresher = WidgetRefresher(
            self.resolver,
            self.pipeline,
            refresh_interval_sec=config.refresh_interval_sec,
            default_fips=config.default_fips,
            clock=clock,
        )

    def refresh(self, override: Optional[str] = None, metrics: Optional[Iterable[MetricKey]] = None) -> RefreshOutcome:
        return self.refresher.refresh(override, metrics=metrics)


def get_manager(config_path: str = "widget_config.json") -> Manager:
    global _singleton_manager
    if _singleton_manager is None:
        config = load_config(config_path)
        if not config.covid_api_key:
            logger.warning("No COVID Act Now API key configured; set COVID_API_KEY.")
        _singleton_manager = Manager(config)
    return _singleton_manager

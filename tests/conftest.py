"""Shared fixtures: frozen clock, temp cache, fake network collaborators."""

import copy
from typing import Any, Dict, List, Optional

import pytest

from connectors.cache_store import FileCacheStore
from errors import GeocodingError, LocationUnavailable
from schemas import LatLon

NOW = 1_700_000_000.0
MINUTE = 60.0
HOUR = 60 * MINUTE


class FrozenClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGeolocator:
    def __init__(self, location: Optional[LatLon] = None):
        self.location = location
        self.calls = 0

    def current_location(self) -> LatLon:
        self.calls += 1
        if self.location is None:
            raise LocationUnavailable("location services disabled")
        return self.location


class FakeGeocoder:
    def __init__(self, fips: Optional[str] = None):
        self.fips = fips
        self.calls: List[tuple] = []

    def county_fips(self, latitude: float, longitude: float) -> str:
        self.calls.append((latitude, longitude))
        if self.fips is None:
            raise GeocodingError("no county")
        return self.fips


class FakeSource:
    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self.document = document
        self.calls: List[str] = []

    def fetch_timeseries(self, fips: str) -> Optional[Dict[str, Any]]:
        self.calls.append(fips)
        return copy.deepcopy(self.document)


def build_document(
    series: Optional[List[Dict[str, Any]]] = None,
    metrics: Optional[Dict[str, Any]] = None,
    overall: Any = 2,
    **overrides: Any,
) -> Dict[str, Any]:
    current = {
        "caseDensity": 15.0,
        "testPositivityRatio": 0.052,
        "infectionRate": 1.04,
        "contactTracerCapacityRatio": 0.31,
        "icuHeadroomRatio": 0.62,
    }
    if metrics:
        current.update(metrics)
    if series is None:
        series = [
            {"date": "2020-11-01", "caseDensity": 10.0, "testPositivityRatio": 0.05,
             "infectionRate": 1.1, "contactTracerCapacityRatio": 0.31, "icuHeadroomRatio": 0.7},
            {"date": "2020-11-02", "caseDensity": 12.0, "testPositivityRatio": 0.051,
             "infectionRate": 1.05, "contactTracerCapacityRatio": 0.3, "icuHeadroomRatio": 0.65},
        ]
    document = {
        "fips": "06037",
        "country": "US",
        "state": "CA",
        "county": "Los Angeles County",
        "lastUpdatedDate": "2020-11-03",
        "url": "https://covidactnow.org/us/california-ca/county/los_angeles_county",
        "riskLevels": {
            "overall": overall,
            "testPositivityRatio": 1,
            "caseDensity": 2,
            "contactTracerCapacityRatio": 2,
            "infectionRate": 1,
            "icuHeadroomRatio": 0,
        },
        "metrics": current,
        "metricsTimeseries": series,
    }
    document.update(overrides)
    return document


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def cache(tmp_path) -> FileCacheStore:
    return FileCacheStore(str(tmp_path / "covid-act-now"))


@pytest.fixture
def document() -> Dict[str, Any]:
    return build_document()


@pytest.fixture
def make_document():
    return build_document

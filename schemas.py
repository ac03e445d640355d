import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from errors import UnclassifiedRiskLevel


class Trend(str, Enum):
    INCREASING = "INCREASING"
    DECREASING = "DECREASING"
    EQUAL = "EQUAL"
    UNDEFINED = "UNDEFINED"


class RiskLevel(int, Enum):
    """Ordinal risk levels as published by COVID Act Now (0-5)."""
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3
    UNKNOWN = 4
    EXTREME = 5

    @property
    def label(self) -> str:
        return _RISK_TEXT[self][0]

    @property
    def description(self) -> str:
        return _RISK_TEXT[self][1]

    @classmethod
    def from_ordinal(cls, value: Any) -> "RiskLevel":
        """Strict conversion. Raises UnclassifiedRiskLevel instead of guessing."""
        if isinstance(value, bool) or value is None:
            raise UnclassifiedRiskLevel(value)
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise UnclassifiedRiskLevel(value)
        if math.isnan(number) or not number.is_integer():
            raise UnclassifiedRiskLevel(value)
        try:
            return cls(int(number))
        except ValueError:
            raise UnclassifiedRiskLevel(value)


_RISK_TEXT = {
    RiskLevel.LOW: ("Low", "On track to contain COVID"),
    RiskLevel.MEDIUM: ("Medium", "Slow disease growth"),
    RiskLevel.HIGH: ("High", "At risk of outbreak"),
    RiskLevel.CRITICAL: ("Critical", "Active or imminent outbreak"),
    RiskLevel.UNKNOWN: ("Unknown", "Risk unknown"),
    RiskLevel.EXTREME: ("Extreme", "Severe outbreak"),
}


class MetricKey(str, Enum):
    CASE_DENSITY = "caseDensity"
    TEST_POSITIVITY_RATIO = "testPositivityRatio"
    INFECTION_RATE = "infectionRate"
    CONTACT_TRACER_CAPACITY_RATIO = "contactTracerCapacityRatio"
    ICU_HEADROOM_RATIO = "icuHeadroomRatio"


@dataclass(frozen=True)
class MetricDefinition:
    label: str
    precision: int
    is_percentage: bool = False


METRIC_DEFINITIONS: Dict[MetricKey, MetricDefinition] = {
    MetricKey.CASE_DENSITY: MetricDefinition("New Cases per 100K", 1),
    MetricKey.TEST_POSITIVITY_RATIO: MetricDefinition("Positive Test Rate", 1, is_percentage=True),
    MetricKey.INFECTION_RATE: MetricDefinition("Infection Rate", 2),
    MetricKey.CONTACT_TRACER_CAPACITY_RATIO: MetricDefinition("Contacts Traced", 0, is_percentage=True),
    MetricKey.ICU_HEADROOM_RATIO: MetricDefinition("ICU Capacity Used", 0, is_percentage=True),
}


@dataclass
class LatLon:
    latitude: float
    longitude: float


@dataclass
class CacheEntry:
    payload: Any
    updated_at: int  # epoch millis of the last validated fetch

    def age_sec(self, now: float) -> float:
        return now - self.updated_at / 1000.0


@dataclass
class DerivedMetric:
    key: MetricKey
    risk_level: Optional[RiskLevel]  # None = could not classify
    value: Optional[float]
    trend: Trend
    label: str
    precision: int
    is_percentage: bool = False

    def formatted(self) -> str:
        if self.value is None:
            return "-"
        if self.is_percentage:
            return f"{self.value * 100:.{self.precision}f}%"
        return f"{self.value:.{self.precision}f}"


@dataclass
class MetricsBundle:
    fips: str
    county: str
    state: str
    last_updated_date: str
    url: str
    overall_risk: Optional[RiskLevel]
    overall_risk_ordinal: Any
    metrics: Dict[MetricKey, DerivedMetric] = field(default_factory=dict)
    from_cache: bool = False
    fetched_at: int = 0


class RefreshStatus(str, Enum):
    OK = "OK"
    LOCATION_UNRESOLVED = "LOCATION_UNRESOLVED"
    UPSTREAM_UNUSABLE = "UPSTREAM_UNUSABLE"
    UNEXPECTED_FAILURE = "UNEXPECTED_FAILURE"


@dataclass
class RefreshOutcome:
    status: RefreshStatus
    fips: Optional[str] = None
    bundle: Optional[MetricsBundle] = None
    message: str = ""
    next_refresh_at: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status == RefreshStatus.OK

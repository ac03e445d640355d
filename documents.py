from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

# --- Schemas ---
# Upstream payloads carry many more fields than we read; keep them so the
# cached copy is the document exactly as fetched.


def _non_empty(value: Any) -> Any:
    if value is None or value == "" or value == [] or value == {}:
        raise ValueError("must be present and non-empty")
    return value


class RiskLevels(BaseModel):
    model_config = ConfigDict(extra="allow")

    overall: Any

    @field_validator("overall")
    @classmethod
    def overall_present(cls, value):
        return _non_empty(value)


class Metrics(BaseModel):
    model_config = ConfigDict(extra="allow")

    caseDensity: float
    testPositivityRatio: Optional[float] = None
    infectionRate: Optional[float] = None
    contactTracerCapacityRatio: Optional[float] = None
    icuHeadroomRatio: Optional[float] = None


class CountyTimeseries(BaseModel):
    """County document from `/county/{fips}.timeseries.json`."""
    model_config = ConfigDict(extra="allow")

    fips: str
    county: str
    state: str
    lastUpdatedDate: str
    url: str
    riskLevels: RiskLevels
    metrics: Metrics
    metricsTimeseries: List[Dict[str, Any]]

    @field_validator("fips", "county", "state", "lastUpdatedDate", "url", "metricsTimeseries")
    @classmethod
    def required_present(cls, value):
        return _non_empty(value)


class CensusArea(BaseModel):
    model_config = ConfigDict(extra="allow")

    county_fips: str


class CensusAreaResponse(BaseModel):
    """FCC `/census/area` lookup result."""
    model_config = ConfigDict(extra="allow")

    results: List[CensusArea] = []

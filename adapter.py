import logging
import math
from typing import Any, Dict, Iterable, Optional

from errors import UnclassifiedRiskLevel
from schemas import (
    METRIC_DEFINITIONS,
    DerivedMetric,
    MetricKey,
    MetricsBundle,
    RiskLevel,
    Trend,
)

logger = logging.getLogger("metrics_adapter")


def _truthy(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def compare_values(a: Any, b: Any) -> Trend:
    """
    Direction of `a` relative to `b`.

    A falsy operand (0, None, NaN) gives UNDEFINED, so a genuine zero reads
    as missing data. Otherwise EQUAL, INCREASING when a > b, DECREASING when a < b.
    """
    if not (_truthy(a) and _truthy(b)):
        return Trend.UNDEFINED
    if a == b:
        return Trend.EQUAL
    if a > b:
        return Trend.INCREASING
    if a < b:
        return Trend.DECREASING
    return Trend.UNDEFINED


def risk_bucket(value: Any) -> int:
    """Legacy table lookup: anything outside 0..5 lands in bucket 0 (Low)."""
    try:
        return int(RiskLevel.from_ordinal(value))
    except UnclassifiedRiskLevel:
        return 0


def classify(value: Any) -> Optional[RiskLevel]:
    try:
        return RiskLevel.from_ordinal(value)
    except UnclassifiedRiskLevel as exc:
        logger.warning("%s", exc)
        return None


class MetricsAdapter:
    """
    Turns a validated county time-series document into a MetricsBundle.
    Trend for each metric pairs the second-to-last series sample with the
    current `metrics` snapshot, which upstream reports separately from the series.
    """

    def derive(
        self,
        document: Dict[str, Any],
        metrics: Optional[Iterable[MetricKey]] = None,
        from_cache: bool = False,
        fetched_at: int = 0,
    ) -> MetricsBundle:
        keys = list(metrics) if metrics is not None else list(MetricKey)
        snapshot = document.get("metrics") or {}
        risk_levels = document.get("riskLevels") or {}
        series = document.get("metricsTimeseries") or []
        prior = series[-2] if len(series) > 1 else None

        derived: Dict[MetricKey, DerivedMetric] = {}
        for key in keys:
            key = MetricKey(key)
            definition = METRIC_DEFINITIONS[key]
            current = snapshot.get(key.value)
            if prior is None:
                trend = Trend.UNDEFINED
            else:
                trend = compare_values(current, prior.get(key.value))
            derived[key] = DerivedMetric(
                key=key,
                risk_level=classify(risk_levels.get(key.value)) if key.value in risk_levels else None,
                value=current,
                trend=trend,
                label=definition.label,
                precision=definition.precision,
                is_percentage=definition.is_percentage,
            )

        overall = risk_levels.get("overall")
        return MetricsBundle(
            fips=document.get("fips"),
            county=document.get("county"),
            state=document.get("state"),
            last_updated_date=document.get("lastUpdatedDate"),
            url=document.get("url"),
            overall_risk=classify(overall),
            overall_risk_ordinal=overall,
            metrics=derived,
            from_cache=from_cache,
            fetched_at=fetched_at,
        )

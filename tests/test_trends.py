import math

import pytest

from adapter import classify, compare_values, risk_bucket
from errors import UnclassifiedRiskLevel
from schemas import DerivedMetric, MetricKey, RiskLevel, Trend


# =============================================================================
# compare_values
# =============================================================================

@pytest.mark.parametrize("a,b,expected", [
    (5, 5, Trend.EQUAL),
    (7.5, 2, Trend.INCREASING),
    (2, 7.5, Trend.DECREASING),
    (0, 5, Trend.UNDEFINED),
    (5, 0, Trend.UNDEFINED),
    (None, 5, Trend.UNDEFINED),
    (5, None, Trend.UNDEFINED),
    (math.nan, 5, Trend.UNDEFINED),
])
def test_compare_values(a, b, expected):
    assert compare_values(a, b) == expected


def test_zero_on_both_sides_is_undefined_not_equal():
    assert compare_values(0, 0) == Trend.UNDEFINED


# =============================================================================
# Risk levels
# =============================================================================

@pytest.mark.parametrize("ordinal", range(6))
def test_bucket_matches_table(ordinal):
    assert risk_bucket(ordinal) == ordinal
    assert RiskLevel.from_ordinal(ordinal) == RiskLevel(ordinal)


@pytest.mark.parametrize("value", [99, -1, math.nan, None, "high", 2.5])
def test_bucket_defaults_to_low(value):
    assert risk_bucket(value) == 0


def test_numeric_string_is_accepted():
    assert risk_bucket("3") == 3
    assert RiskLevel.from_ordinal("3") == RiskLevel.CRITICAL


@pytest.mark.parametrize("value", [99, math.nan, "high", None, True])
def test_strict_conversion_refuses_to_guess(value):
    with pytest.raises(UnclassifiedRiskLevel):
        RiskLevel.from_ordinal(value)
    assert classify(value) is None


def test_unclassified_is_a_value_error():
    assert issubclass(UnclassifiedRiskLevel, ValueError)


def test_table_order_and_text():
    assert [level.label for level in RiskLevel] == [
        "Low", "Medium", "High", "Critical", "Unknown", "Extreme",
    ]
    assert RiskLevel.EXTREME.description == "Severe outbreak"
    assert RiskLevel.LOW.description == "On track to contain COVID"


# =============================================================================
# Formatting
# =============================================================================

def _metric(value, precision, is_percentage=False):
    return DerivedMetric(
        key=MetricKey.CASE_DENSITY,
        risk_level=RiskLevel.HIGH,
        value=value,
        trend=Trend.UNDEFINED,
        label="x",
        precision=precision,
        is_percentage=is_percentage,
    )


def test_formatted_plain_value():
    assert _metric(15.04, 1).formatted() == "15.0"


def test_formatted_percentage():
    assert _metric(0.052, 1, is_percentage=True).formatted() == "5.2%"


def test_formatted_missing_value():
    assert _metric(None, 1).formatted() == "-"

import math

import pytest

from airquality_core.domain.classifier import classify, severity
from airquality_core.domain.errors import ConfigurationError
from airquality_core.domain.models import (
    DEFAULT_THRESHOLDS,
    AirQualityLevel,
    SensorReading,
    ThresholdTable,
)

PM10_LIMITS = (0, 20, 40, 75, 100)


@pytest.mark.parametrize(
    "value, expected",
    [
        (20, 0),
        (21, 1),
        (40, 1),
        (40.5, 2),
        (100, 3),
        (101, 4),
        (5000, 4),
    ],
)
def test_severity_uses_strict_comparison(value, expected):
    assert severity(value, PM10_LIMITS) == expected


@pytest.mark.parametrize("value", [None, "abc", math.nan, math.inf, True, 0, -3])
def test_severity_without_contribution(value):
    assert severity(value, PM10_LIMITS) is None


def test_reading_on_breakpoint_is_lower_level():
    assert classify(SensorReading(pm10=20), DEFAULT_THRESHOLDS) == AirQualityLevel.EXCELLENT
    assert classify(SensorReading(pm10=21), DEFAULT_THRESHOLDS) == AirQualityLevel.GOOD


def test_worst_pollutant_wins():
    reading = SensorReading(pm10=41, pm25=10)
    assert classify(reading, DEFAULT_THRESHOLDS) == AirQualityLevel.FAIR

    reading = SensorReading(pm10=5, pm25=71)
    assert classify(reading, DEFAULT_THRESHOLDS) == AirQualityLevel.POOR


def test_no_readings_is_unknown():
    assert classify(SensorReading(), DEFAULT_THRESHOLDS) == AirQualityLevel.UNKNOWN


def test_zero_readings_are_unknown():
    assert classify(SensorReading(pm10=0, pm25=0), DEFAULT_THRESHOLDS) == AirQualityLevel.UNKNOWN


def test_missing_pollutant_is_skipped():
    reading = SensorReading(pm10=None, pm25=51)
    assert classify(reading, DEFAULT_THRESHOLDS) == AirQualityLevel.INFERIOR


def test_non_numeric_reading_does_not_raise():
    reading = SensorReading(pm10="n/a", pm25=16)  # type: ignore[arg-type]
    assert classify(reading, DEFAULT_THRESHOLDS) == AirQualityLevel.GOOD


def test_only_tracked_pollutants_are_classified():
    pm25_only = ThresholdTable.from_lists(pm25=[0, 15, 30, 50, 70])
    reading = SensorReading(pm10=500, pm25=1)
    assert classify(reading, pm25_only) == AirQualityLevel.EXCELLENT


@pytest.mark.parametrize(
    "limits",
    [
        [0, 20, 40, 75],
        [5, 20, 40, 75, 100],
        [0, 40, 20, 75, 100],
        ["zero", 20, 40, 75, 100],
        [0, None, 40, 75, 100],
    ],
)
def test_invalid_threshold_table_rejected(limits):
    with pytest.raises(ConfigurationError):
        ThresholdTable.from_lists(pm10=limits)


def test_threshold_table_allows_equal_breakpoints():
    table = ThresholdTable.from_lists(pm10=[0, 20, 20, 75, 100])
    assert table["pm10"] == (0.0, 20.0, 20.0, 75.0, 100.0)

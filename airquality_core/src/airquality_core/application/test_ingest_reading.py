import json
import logging

import pytest

from airquality_core.application.ingest_reading import (
    apply_notification,
    parse_level,
    parse_number,
    refresh_from_document,
)
from airquality_core.domain.errors import ParseError
from airquality_core.domain.models import DEFAULT_THRESHOLDS, AirQualityLevel, SensorReading


def test_parse_number():
    assert parse_number("12.5") == 12.5
    assert parse_number(7) == 7.0
    assert parse_number("abc") is None
    assert parse_number("nan") is None
    assert parse_number(None) is None
    assert parse_number(False) is None


def test_parse_level():
    assert parse_level("3") == AirQualityLevel.FAIR
    assert parse_level(5) == AirQualityLevel.POOR
    assert parse_level(6) is None
    assert parse_level(2.5) is None


def test_bulk_refresh_replaces_fields_and_classifies():
    body = json.dumps({"pm10": 41, "pm25": 10})
    result = refresh_from_document(SensorReading(), body, DEFAULT_THRESHOLDS)

    assert result.pm10 == 41.0
    assert result.pm25 == 10.0
    assert result.air_quality == AirQualityLevel.FAIR


def test_bulk_refresh_accepts_mapping():
    result = refresh_from_document(SensorReading(), {"pm25": "51"}, DEFAULT_THRESHOLDS)
    assert result.pm25 == 51.0
    assert result.air_quality == AirQualityLevel.INFERIOR


def test_bulk_refresh_uses_precomputed_level():
    body = json.dumps({"pm10": 5, "pm25": 5, "air_quality": 5})
    result = refresh_from_document(SensorReading(), body, DEFAULT_THRESHOLDS)
    assert result.air_quality == AirQualityLevel.POOR


def test_bulk_refresh_invalid_precomputed_level_falls_back(caplog):
    body = json.dumps({"pm10": 25, "air_quality": "bad"})
    with caplog.at_level(logging.WARNING):
        result = refresh_from_document(SensorReading(), body, DEFAULT_THRESHOLDS)
    assert result.air_quality == AirQualityLevel.GOOD
    assert "air_quality" in caplog.text


def test_bulk_refresh_non_numeric_keeps_previous_value(caplog):
    previous = SensorReading(pm10=30.0, pm25=12.0, air_quality=AirQualityLevel.GOOD)
    body = json.dumps({"pm10": "n/a", "pm25": 16})

    with caplog.at_level(logging.WARNING):
        result = refresh_from_document(previous, body, DEFAULT_THRESHOLDS)

    assert result.pm10 == 30.0
    assert result.pm25 == 16.0
    assert result.air_quality == AirQualityLevel.GOOD
    assert "pm10" in caplog.text


def test_bulk_refresh_non_numeric_never_set_stays_unset():
    result = refresh_from_document(SensorReading(), {"pm10": "x"}, DEFAULT_THRESHOLDS)
    assert result.pm10 is None
    assert result.air_quality == AirQualityLevel.UNKNOWN


def test_bulk_refresh_does_not_mutate_previous():
    previous = SensorReading(pm10=1.0)
    refresh_from_document(previous, {"pm10": 99}, DEFAULT_THRESHOLDS)
    assert previous.pm10 == 1.0


@pytest.mark.parametrize("body", ["not json", "[1, 2]", '"pm10"'])
def test_bulk_refresh_rejects_non_object(body):
    with pytest.raises(ParseError):
        refresh_from_document(SensorReading(), body, DEFAULT_THRESHOLDS)


def test_notification_updates_one_field_and_reclassifies():
    previous = SensorReading(pm10=10.0, pm25=5.0, air_quality=AirQualityLevel.EXCELLENT)
    result = apply_notification(previous, "PM2_5Density", "51", DEFAULT_THRESHOLDS)

    assert result is not None
    assert result.pm10 == 10.0
    assert result.pm25 == 51.0
    assert result.air_quality == AirQualityLevel.INFERIOR


def test_notification_accepts_hap_names():
    result = apply_notification(SensorReading(), "PM10Density", 76, DEFAULT_THRESHOLDS)
    assert result is not None
    assert result.air_quality == AirQualityLevel.INFERIOR


def test_notification_with_level_sets_level_directly():
    previous = SensorReading(pm10=10.0)
    result = apply_notification(previous, "AirQuality", 4, DEFAULT_THRESHOLDS)
    assert result == SensorReading(pm10=10.0, air_quality=AirQualityLevel.INFERIOR)


def test_notification_unknown_characteristic_is_ignored():
    previous = SensorReading(pm10=10.0, pm25=5.0)
    assert apply_notification(previous, "Temperature", 22, DEFAULT_THRESHOLDS) is None


def test_notification_non_numeric_unsets_field(caplog):
    previous = SensorReading(pm10=50.0, pm25=5.0, air_quality=AirQualityLevel.FAIR)
    with caplog.at_level(logging.WARNING):
        result = apply_notification(previous, "PM10Density", "oops", DEFAULT_THRESHOLDS)

    assert result is not None
    assert result.pm10 is None
    assert result.air_quality == AirQualityLevel.EXCELLENT
    assert "oops" in caplog.text

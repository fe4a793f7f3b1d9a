import json
import logging
import math
from dataclasses import replace
from typing import Any, Mapping, Optional, Union

from airquality_core.domain.classifier import classify
from airquality_core.domain.errors import ParseError
from airquality_core.domain.models import (
    AIR_QUALITY,
    AirQualityLevel,
    Pollutant,
    SensorReading,
    ThresholdTable,
    resolve_field,
)

log = logging.getLogger(__name__)


def parse_number(value: Any) -> Optional[float]:
    """Lenient float parsing; None for anything that is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_level(value: Any) -> Optional[AirQualityLevel]:
    number = parse_number(value)
    if number is None or not number.is_integer():
        return None
    try:
        return AirQualityLevel(int(number))
    except ValueError:
        return None


def _decode(body: Union[str, bytes, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(body, Mapping):
        return body
    try:
        parsed = json.loads(body)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Status document is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ParseError(f"Status document must be a JSON object, got {type(parsed).__name__}")
    return parsed


def refresh_from_document(
    reading: SensorReading,
    body: Union[str, bytes, Mapping[str, Any]],
    thresholds: ThresholdTable,
) -> SensorReading:
    """Apply a full status document and return the new reading.

    Pollutant fields that are missing or not numeric keep their previous
    value. A valid ``air_quality`` field in the document is taken as the
    pre-computed level; otherwise the level is classified from the
    pollutant values.
    """
    document = _decode(body)
    updates: dict = {}

    for pollutant in Pollutant.ALL:
        if pollutant not in document:
            continue
        value = parse_number(document[pollutant])
        if value is None:
            log.warning(
                "Ignoring non-numeric value %r for %s in status document",
                document[pollutant],
                pollutant,
            )
            continue
        updates[pollutant] = value

    refreshed = replace(reading, **updates)

    level = None
    if AIR_QUALITY in document:
        level = parse_level(document[AIR_QUALITY])
        if level is None:
            log.warning(
                "Ignoring invalid %s value %r in status document, classifying instead",
                AIR_QUALITY,
                document[AIR_QUALITY],
            )
    if level is None:
        level = classify(refreshed, thresholds)

    return replace(refreshed, air_quality=level)


def apply_notification(
    reading: SensorReading,
    characteristic: str,
    value: Any,
    thresholds: ThresholdTable,
) -> Optional[SensorReading]:
    """Apply a single pushed characteristic value.

    Returns None when the characteristic is not tracked by the accessory.
    """
    field_name = resolve_field(characteristic)
    if field_name is None:
        log.info(
            "Encountered unknown characteristic when handling notification: %s",
            characteristic,
        )
        return None

    if field_name == AIR_QUALITY:
        level = parse_level(value)
        if level is None:
            log.warning("Ignoring invalid air quality level %r from notification", value)
            return reading
        return replace(reading, air_quality=level)

    number = parse_number(value)
    if number is None:
        log.warning("Non-numeric value %r for %s, treating as unset", value, characteristic)

    updated = replace(reading, **{field_name: number})
    return replace(updated, air_quality=classify(updated, thresholds))

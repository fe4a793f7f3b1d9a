import math
from typing import Optional, Sequence

from airquality_core.domain.models import (
    SEVERITY_LEVELS,
    AirQualityLevel,
    SensorReading,
    ThresholdTable,
)


def _as_number(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def severity(value, breakpoints: Sequence[float]) -> Optional[int]:
    """Highest breakpoint index strictly exceeded by ``value``.

    Returns None when the value is missing, not a number, or does not
    exceed the first breakpoint.
    """
    number = _as_number(value)
    if number is None:
        return None
    exceeded = None
    for index, limit in enumerate(breakpoints):
        if number > limit:
            exceeded = index
    return exceeded


def classify(reading: SensorReading, thresholds: ThresholdTable) -> AirQualityLevel:
    """Overall air quality; the worst pollutant wins."""
    worst: Optional[int] = None
    values = reading.pollutants()
    for pollutant in thresholds.pollutants():
        k = severity(values.get(pollutant), thresholds[pollutant])
        if k is not None and (worst is None or k > worst):
            worst = k

    if worst is None:
        return AirQualityLevel.UNKNOWN
    return SEVERITY_LEVELS[worst]

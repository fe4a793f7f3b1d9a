from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from airquality_core.domain.errors import ConfigurationError


class AirQualityLevel(IntEnum):
    """Values of the HAP ``AirQuality`` characteristic."""

    UNKNOWN = 0
    EXCELLENT = 1
    GOOD = 2
    FAIR = 3
    INFERIOR = 4
    POOR = 5


# severity index -> level
SEVERITY_LEVELS: Dict[int, AirQualityLevel] = {
    0: AirQualityLevel.EXCELLENT,
    1: AirQualityLevel.GOOD,
    2: AirQualityLevel.FAIR,
    3: AirQualityLevel.INFERIOR,
    4: AirQualityLevel.POOR,
}


class Pollutant:
    PM10 = "pm10"
    PM25 = "pm25"

    ALL = (PM10, PM25)


AIR_QUALITY = "air_quality"

# Internal field name -> HAP characteristic name
HAP_CHARACTERISTICS: Dict[str, str] = {
    AIR_QUALITY: "AirQuality",
    Pollutant.PM10: "PM10Density",
    Pollutant.PM25: "PM2.5Density",
}

_FIELD_ALIASES: Dict[str, str] = {
    **{name: field_name for field_name, name in HAP_CHARACTERISTICS.items()},
    "PM2_5Density": Pollutant.PM25,
    AIR_QUALITY: AIR_QUALITY,
    Pollutant.PM10: Pollutant.PM10,
    Pollutant.PM25: Pollutant.PM25,
}


def resolve_field(name: str) -> Optional[str]:
    """Map a characteristic name (HAP, legacy or internal) to a reading field."""
    return _FIELD_ALIASES.get(name)


Number = Union[int, float]


@dataclass(frozen=True)
class SensorReading:
    pm10: Optional[float] = None
    pm25: Optional[float] = None
    air_quality: AirQualityLevel = AirQualityLevel.UNKNOWN

    def pollutants(self) -> Dict[str, Optional[float]]:
        return {Pollutant.PM10: self.pm10, Pollutant.PM25: self.pm25}

    def value_of(self, field_name: str) -> Number:
        """Value handed to the host for a characteristic; unset densities read as 0."""
        if field_name == AIR_QUALITY:
            return int(self.air_quality)
        if field_name not in Pollutant.ALL:
            raise KeyError(field_name)
        value = getattr(self, field_name)
        return 0.0 if value is None else value


BREAKPOINT_COUNT = 5


@dataclass(frozen=True)
class ThresholdTable:
    """Ascending per-pollutant breakpoints; index k separates severity k from k+1."""

    limits: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)

    def __post_init__(self):
        normalized: Dict[str, Tuple[float, ...]] = {}
        for pollutant, breakpoints in self.limits.items():
            normalized[pollutant] = _validate_breakpoints(pollutant, breakpoints)
        object.__setattr__(self, "limits", normalized)

    @classmethod
    def from_lists(cls, **limits: Sequence[float]) -> "ThresholdTable":
        return cls({name: tuple(values) for name, values in limits.items()})

    def pollutants(self) -> Tuple[str, ...]:
        return tuple(self.limits)

    def __getitem__(self, pollutant: str) -> Tuple[float, ...]:
        return self.limits[pollutant]


def _validate_breakpoints(pollutant: str, breakpoints: Sequence[float]) -> Tuple[float, ...]:
    try:
        values = tuple(float(v) for v in breakpoints)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{pollutant}: breakpoints must be numbers, got {breakpoints!r}") from e
    if len(values) != BREAKPOINT_COUNT:
        raise ConfigurationError(
            f"{pollutant}: expected {BREAKPOINT_COUNT} breakpoints, got {len(values)}"
        )
    if values[0] != 0:
        raise ConfigurationError(f"{pollutant}: first breakpoint must be 0, got {values[0]}")
    if any(b < a for a, b in zip(values, values[1:])):
        raise ConfigurationError(f"{pollutant}: breakpoints must be ascending, got {values}")
    return values


DEFAULT_THRESHOLDS = ThresholdTable(
    {
        Pollutant.PM10: (0, 20, 40, 75, 100),
        Pollutant.PM25: (0, 15, 30, 50, 70),
    }
)

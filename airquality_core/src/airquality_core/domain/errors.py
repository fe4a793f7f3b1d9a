from typing import Optional


class AirQualityError(Exception):
    """Base class for errors raised by the air quality accessory."""


class ConfigurationError(AirQualityError):
    """Malformed URL, MQTT options, cache or threshold configuration."""


class TransportError(AirQualityError):
    """The status fetch failed before a usable response arrived."""


class HttpStatusError(TransportError):
    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"Got http error code {status_code}")
        self.status_code = status_code


class ParseError(AirQualityError):
    """The status document could not be decoded as a JSON object."""

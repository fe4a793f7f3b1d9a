import os
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic_settings import BaseSettings

from airquality_core.domain.models import Pollutant, ThresholdTable


class Environment(str, Enum):
    PRODUCTION = "production"
    DEVELOPMENT = "development"
    TESTING = "testing"


class Settings(BaseSettings):
    """Configuration settings for the air quality accessory."""

    # Environment
    ENVIRONMENT: Environment = Environment.DEVELOPMENT

    # Accessory
    ACCESSORY_NAME: str = "Air Quality"
    ACCESSORY_MANUFACTURER: str = "http-airquality"
    DEBUG: bool = False

    # Status URL
    GET_URL: Optional[str] = None
    GET_URL_METHOD: str = "GET"
    GET_URL_BODY: Optional[str] = None
    GET_URL_HEADERS: Dict[str, str] = {}
    GET_URL_USERNAME: Optional[str] = None
    GET_URL_PASSWORD: Optional[str] = None
    GET_URL_STRICT_SSL: bool = True
    REQUEST_TIMEOUT_SEC: float = 10.0

    # Status cache (-1 = infinite, 0 = always query) and pulling
    STATUS_CACHE_MS: int = 0
    PULL_INTERVAL_SEC: Optional[float] = None

    # Breakpoints
    PM10_LIMITS: List[float] = [0, 20, 40, 75, 100]
    PM25_LIMITS: List[float] = [0, 15, 30, 50, 70]

    # Notifications
    NOTIFICATION_ID: Optional[str] = None
    NOTIFICATION_PASSWORD: Optional[str] = None
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8581

    # MQTT, JSON object (see airquality_core.config.parsers.MqttOptions)
    MQTT: Optional[Dict[str, Any]] = None

    # HAP
    HAP_PORT: int = 51826
    HAP_PERSIST_FILE: str = "accessory.state"
    GETTER_TIMEOUT_SEC: float = 15.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    def url_property(self) -> Optional[Dict[str, Any]]:
        """The status URL in the object form accepted by ``parse_url_property``."""
        if not self.GET_URL:
            return None
        prop: Dict[str, Any] = {
            "url": self.GET_URL,
            "method": self.GET_URL_METHOD,
            "body": self.GET_URL_BODY,
            "headers": self.GET_URL_HEADERS,
            "strict_ssl": self.GET_URL_STRICT_SSL,
            "timeout": self.REQUEST_TIMEOUT_SEC,
        }
        if self.GET_URL_USERNAME:
            prop["auth"] = {
                "username": self.GET_URL_USERNAME,
                "password": self.GET_URL_PASSWORD or "",
            }
        return prop

    def thresholds(self) -> ThresholdTable:
        return ThresholdTable.from_lists(
            **{Pollutant.PM10: self.PM10_LIMITS, Pollutant.PM25: self.PM25_LIMITS}
        )

    def effective_log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL


def get_settings(**overrides: Any) -> Settings:
    """Get settings based on environment."""
    env = os.getenv("AIRQUALITY_ENV", "development").lower()

    if env == "production":
        defaults: Dict[str, Any] = dict(ENVIRONMENT=Environment.PRODUCTION, LOG_LEVEL="WARNING")
    elif env == "testing":
        defaults = dict(
            ENVIRONMENT=Environment.TESTING,
            ACCESSORY_NAME="Test Air Quality",
            GET_URL="http://localhost:8080/air",
            API_PORT=8582,
            HAP_PORT=51827,
            HAP_PERSIST_FILE="test-accessory.state",
            GETTER_TIMEOUT_SEC=2.0,
            LOG_LEVEL="DEBUG",
        )
    else:
        defaults = dict(ENVIRONMENT=Environment.DEVELOPMENT, LOG_LEVEL="DEBUG")

    defaults.update(overrides)
    return Settings(**defaults)

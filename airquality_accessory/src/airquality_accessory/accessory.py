"""
HAP accessory for an HTTP-polled particulate matter sensor.

One ``AirQualitySensor`` service carries the derived ``AirQuality`` level
and the raw ``PM10Density``/``PM2.5Density`` readings. Reads from the Home
app go through ``AirQualityService.get_state``; pushed updates arrive via
``update``.
"""

import logging
from functools import partial
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Union

from airquality_core.domain.models import AIR_QUALITY, HAP_CHARACTERISTICS
from pyhap.accessory import Accessory
from pyhap.characteristic import Characteristic
from pyhap.const import CATEGORY_SENSOR

from .service import AirQualityService

logger = logging.getLogger(__name__)

MODEL = "HTTP AirQuality Sensor"
SERIAL_NUMBER = "TS01"


def firmware_revision() -> str:
    try:
        return version("http-airquality-sensor")
    except PackageNotFoundError:
        return "0.0.0"


class HTTPAirQualitySensor(Accessory):
    """Accessory wrapper around an ``AirQualityService``."""

    category = CATEGORY_SENSOR

    def __init__(
        self,
        driver,
        display_name: str,
        *,
        service: AirQualityService,
        getter_timeout: float = 15.0,
        manufacturer: str = "http-airquality",
        **kwargs,
    ):
        self._service = service
        self._getter_timeout = getter_timeout
        self._chars: Dict[str, Characteristic] = {}
        super().__init__(driver, display_name, **kwargs)

        self.set_info_service(
            firmware_revision=firmware_revision(),
            manufacturer=manufacturer,
            model=MODEL,
            serial_number=SERIAL_NUMBER,
        )
        self.get_service("AccessoryInformation").configure_char(
            "Identify", setter_callback=self._on_identify
        )

        optional_chars = [name for field, name in HAP_CHARACTERISTICS.items() if field != AIR_QUALITY]
        air_quality = self.add_preload_service("AirQualitySensor", chars=optional_chars)
        for field_name, char_name in HAP_CHARACTERISTICS.items():
            self._chars[field_name] = air_quality.configure_char(
                char_name, getter_callback=partial(self._get_value, field_name)
            )

        service.attach_store(self)

    def _get_value(self, field_name: str) -> Union[int, float]:
        # Raising here makes the HAP server report the characteristic as unreachable.
        return self._service.get_state(field_name).result(timeout=self._getter_timeout)

    def _on_identify(self, _value) -> None:
        self._service.identify()

    def update(self, field_name: str, value: Union[int, float]) -> None:
        char = self._chars.get(field_name)
        if char is None:
            logger.debug("No characteristic for %s", field_name)
            return
        char.set_value(value)

    async def stop(self):
        logger.info("Stopping accessory %s", self.display_name)
        self._service.close()
        await super().stop()

import json

import factory
from airquality_core.domain.models import AirQualityLevel, SensorReading


class SensorReadingFactory(factory.Factory):
    class Meta:
        model = SensorReading

    pm10 = 12.0
    pm25 = 8.0
    air_quality = AirQualityLevel.EXCELLENT


class StatusDocumentFactory(factory.DictFactory):
    pm10 = factory.Sequence(lambda n: float(10 + n))
    pm25 = factory.Sequence(lambda n: float(5 + n))


def status_body(**fields) -> str:
    return json.dumps(StatusDocumentFactory(**fields))

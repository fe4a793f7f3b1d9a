import logging
import signal
import sys
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import uvicorn
from airquality_core.config.environments import Settings, get_settings
from airquality_core.config.parsers import UrlProperty, parse_mqtt_options, parse_url_property
from airquality_core.domain.cache import StatusCache
from airquality_core.domain.errors import ConfigurationError
from airquality_core.domain.ports import Fetcher
from pyhap.accessory_driver import AccessoryDriver

from .accessory import HTTPAirQualitySensor
from .dispatch import Dispatcher
from .http_client import HttpFetcher
from .mqtt_subscriber import MQTTSubscriber
from .notifications import NotificationRegistry, create_app, registry
from .poller import PullTimer
from .service import AirQualityService

log = logging.getLogger(__name__)


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.effective_log_level().upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


@dataclass
class Runtime:
    service: AirQualityService
    accessory: HTTPAirQualitySensor
    mqtt: Optional[MQTTSubscriber] = None
    pull_timer: Optional[PullTimer] = None
    notifications_enabled: bool = False

    def close(self) -> None:
        if self.mqtt is not None:
            self.mqtt.close()
        self.service.close()


def make_driver(settings: Settings) -> AccessoryDriver:
    return AccessoryDriver(port=settings.HAP_PORT, persist_file=settings.HAP_PERSIST_FILE)


def make_mqtt_subscriber(settings: Settings, service: AirQualityService) -> Optional[MQTTSubscriber]:
    """MQTT is optional; any problem here is logged and MQTT stays disabled."""
    if not settings.MQTT:
        return None
    try:
        options = parse_mqtt_options(settings.MQTT)
    except ConfigurationError as e:
        log.error("Error occurred while parsing MQTT property: %s", e)
        log.error("MQTT will not be enabled!")
        return None

    try:
        subscriber = MQTTSubscriber(
            options,
            service.handle_notification,
            client_id=f"airquality-{settings.ENVIRONMENT.value}",
        )
    except Exception as e:
        log.error("Error occurred creating MQTT client: %s", e)
        return None
    subscriber.connect()
    return subscriber


def bootstrap(
    settings: Settings,
    driver,
    *,
    fetcher_factory: Callable[[UrlProperty], Fetcher] = HttpFetcher,
    mqtt_factory: Callable[[Settings, AirQualityService], Optional[MQTTSubscriber]] = make_mqtt_subscriber,
    notification_registry: NotificationRegistry = registry,
) -> Optional[Runtime]:
    """Wire one accessory. Returns None when the configuration is unusable."""
    log.info(f"Starting accessory in {settings.ENVIRONMENT.value} environment")
    log.info(f"Accessory name: {settings.ACCESSORY_NAME}")

    try:
        url_property = parse_url_property(settings.url_property())
        cache = StatusCache.from_milliseconds(settings.STATUS_CACHE_MS)
        thresholds = settings.thresholds()
    except ConfigurationError as e:
        log.warning("Error occurred while parsing configuration: %s", e)
        log.warning("Aborting...")
        return None

    log.info(f"Status URL: {url_property.method} {url_property.url}")
    log.info(
        "Status cache: %s",
        "infinite" if cache.is_infinite() else f"{cache.ttl_s}s",
    )

    dispatcher = Dispatcher(name=f"dispatch-{settings.ACCESSORY_NAME}")
    dispatcher.start()
    service = AirQualityService(
        name=settings.ACCESSORY_NAME,
        fetcher=fetcher_factory(url_property),
        cache=cache,
        thresholds=thresholds,
        dispatcher=dispatcher,
    )
    accessory = HTTPAirQualitySensor(
        driver,
        settings.ACCESSORY_NAME,
        service=service,
        getter_timeout=settings.GETTER_TIMEOUT_SEC,
        manufacturer=settings.ACCESSORY_MANUFACTURER,
    )

    notifications_enabled = notification_registry.register_if_defined(
        settings.NOTIFICATION_ID,
        settings.NOTIFICATION_PASSWORD,
        service.handle_notification,
    )

    mqtt = mqtt_factory(settings, service)

    pull_timer = None
    if settings.PULL_INTERVAL_SEC:
        pull_timer = PullTimer(settings.PULL_INTERVAL_SEC, service.poll)
        service.pull_timer = pull_timer
        pull_timer.start()
        log.info(f"Pull interval: {settings.PULL_INTERVAL_SEC}s")

    return Runtime(
        service=service,
        accessory=accessory,
        mqtt=mqtt,
        pull_timer=pull_timer,
        notifications_enabled=notifications_enabled,
    )


def start_notification_api(settings: Settings) -> threading.Thread:
    config = uvicorn.Config(
        create_app(),
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.effective_log_level().lower(),
    )
    server = uvicorn.Server(config)
    thread = threading.Thread(target=server.run, name="notification-api", daemon=True)
    thread.start()
    log.info(f"Notification API listening on {settings.API_HOST}:{settings.API_PORT}")
    return thread


def main(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    setup_logging(settings)

    driver = make_driver(settings)
    runtime = bootstrap(settings, driver)
    if runtime is None:
        sys.exit(1)

    driver.add_accessory(accessory=runtime.accessory)
    if runtime.notifications_enabled:
        start_notification_api(settings)

    signal.signal(signal.SIGTERM, driver.signal_handler)
    try:
        driver.start()
    finally:
        log.info("Received shutdown signal, stopping accessory...")
        if runtime.mqtt is not None:
            runtime.mqtt.close()


if __name__ == "__main__":
    main()

"""
Canonical entry point for airquality_accessory package.

Usage:
    airquality-accessory --environment development run
    airquality-accessory --environment testing check-config
    airquality-accessory api --port 8581
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict

import uvicorn
from airquality_core.config.environments import Settings, get_settings
from airquality_core.config.parsers import parse_mqtt_options, parse_url_property
from airquality_core.domain.cache import StatusCache
from airquality_core.domain.errors import ConfigurationError

from airquality_accessory.notifications import create_app, registry
from airquality_accessory.sensor import main as accessory_main
from airquality_accessory.sensor import setup_logging


def check_config(config: Settings) -> int:
    """Validate the configuration and print a summary."""
    log = logging.getLogger(__name__)
    try:
        url_property = parse_url_property(config.url_property())
        cache = StatusCache.from_milliseconds(config.STATUS_CACHE_MS)
        thresholds = config.thresholds()
        mqtt = parse_mqtt_options(config.MQTT) if config.MQTT else None
    except ConfigurationError as e:
        log.error(f"Invalid configuration: {e}")
        return 1

    print(f"Accessory: {config.ACCESSORY_NAME}")
    print(f"Status URL: {url_property.method} {url_property.url}")
    print(f"Status cache: {'infinite' if cache.is_infinite() else f'{cache.ttl_s}s'}")
    for pollutant, limits in thresholds.limits.items():
        print(f"Breakpoints {pollutant}: {list(limits)}")
    print(f"Pull interval: {config.PULL_INTERVAL_SEC or 'disabled'}")
    print(f"Notifications: {config.NOTIFICATION_ID or 'disabled'}")
    print(f"MQTT: {f'{mqtt.host}:{mqtt.port}' if mqtt else 'disabled'}")
    return 0


def run_api_server(config: Settings, args: argparse.Namespace) -> None:
    """Run only the notification API, without a HAP accessory."""
    log = logging.getLogger(__name__)
    host = args.host or config.API_HOST
    port = args.port or config.API_PORT

    log.info("Starting notification API...")
    log.info(f"Host: {host}")
    log.info(f"Port: {port}")

    if not registry.register_if_defined(
        config.NOTIFICATION_ID,
        config.NOTIFICATION_PASSWORD,
        lambda body: log.info("Received notification: %s", body),
    ):
        log.warning("NOTIFICATION_ID is not set, every notification will be rejected")

    uvicorn.run(create_app(), host=host, port=port, log_level=config.effective_log_level().lower())


def main() -> None:
    """Main entry point for airquality_accessory."""
    parser = argparse.ArgumentParser(description="HTTP Air Quality Sensor accessory")
    parser.add_argument(
        "--environment",
        choices=["production", "development", "testing"],
        default="development",
        help="Environment to run in",
    )
    parser.add_argument("--name", help="Accessory name (overrides config)")
    parser.add_argument("--get-url", help="Status URL (overrides config)")
    parser.add_argument("--host", help="Notification API host (overrides config)")
    parser.add_argument("--port", type=int, help="Notification API port (overrides config)")
    parser.add_argument(
        "command",
        nargs="?",
        choices=["run", "api", "check-config"],
        default="run",
        help="Command to run",
    )

    args = parser.parse_args()

    # Set environment variable for config
    os.environ["AIRQUALITY_ENV"] = args.environment

    overrides: Dict[str, Any] = {}
    if args.name:
        overrides["ACCESSORY_NAME"] = args.name
    if args.get_url:
        overrides["GET_URL"] = args.get_url
    if args.host:
        overrides["API_HOST"] = args.host
    if args.port:
        overrides["API_PORT"] = args.port
    config = get_settings(**overrides)

    setup_logging(config)
    log = logging.getLogger(__name__)
    log.info(f"Environment: {args.environment}")

    if args.command == "check-config":
        sys.exit(check_config(config))
    elif args.command == "api":
        run_api_server(config, args)
    else:
        accessory_main(config)


if __name__ == "__main__":
    main()

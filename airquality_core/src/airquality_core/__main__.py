"""
Canonical entry point for airquality_core package.

This package contains the classifier, the status cache, reading ingestion
and configuration. It does not talk to the network or to the HAP host.
"""

import sys

from airquality_core.config.environments import get_settings
from airquality_core.config.parsers import parse_url_property
from airquality_core.domain.cache import StatusCache
from airquality_core.domain.errors import ConfigurationError


def main() -> None:
    """Main entry point for airquality_core package."""
    print("airquality_core - Domain and application layer package")
    print("This package is not intended to be run directly.")
    print("Use the airquality_accessory package instead.")

    try:
        config = get_settings()
        print("\nCurrent configuration:")
        print(f"Environment: {config.ENVIRONMENT.value}")
        print(f"Accessory: {config.ACCESSORY_NAME}")
        print(f"Status URL: {parse_url_property(config.url_property()).url}")
        cache = StatusCache.from_milliseconds(config.STATUS_CACHE_MS)
        print(f"Status cache: {'infinite' if cache.is_infinite() else f'{cache.ttl_s}s'}")
        print(f"Breakpoints: {dict(config.thresholds().limits)}")
    except ConfigurationError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()

import math
import time
from typing import Callable, Optional

from airquality_core.domain.errors import ConfigurationError

INFINITE_MS = -1


class StatusCache:
    """Decides whether a host query may reuse the last fetched status.

    A TTL of 0 refreshes on every query, an infinite TTL refreshes only
    until the first successful fetch.
    """

    def __init__(self, ttl_s: float, clock: Callable[[], float] = time.monotonic):
        if ttl_s < 0:
            raise ConfigurationError(f"Cache TTL must be >= 0, got {ttl_s}")
        self.ttl_s = ttl_s
        self._clock = clock
        self._last_refreshed: Optional[float] = None

    @classmethod
    def from_milliseconds(
        cls, ttl_ms: float, clock: Callable[[], float] = time.monotonic
    ) -> "StatusCache":
        if ttl_ms == INFINITE_MS:
            return cls(math.inf, clock)
        if ttl_ms < 0:
            raise ConfigurationError(
                f"statusCache must be -1 (infinite) or a non-negative number of ms, got {ttl_ms}"
            )
        return cls(ttl_ms / 1000.0, clock)

    def is_infinite(self) -> bool:
        return math.isinf(self.ttl_s)

    def should_refresh(self) -> bool:
        if self.ttl_s == 0 or self._last_refreshed is None:
            return True
        if self.is_infinite():
            return False
        return self._clock() - self._last_refreshed > self.ttl_s

    def mark_refreshed(self) -> None:
        self._last_refreshed = self._clock()

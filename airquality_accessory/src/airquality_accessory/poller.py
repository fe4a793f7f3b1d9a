import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class PullTimer(threading.Thread):
    """Calls ``handler`` every ``interval_s`` seconds.

    ``reset_timer`` postpones the next tick by a full interval; it is called
    whenever a status fetch completes so that host queries and pulls do not
    stack up.
    """

    daemon = True

    def __init__(self, interval_s: float, handler: Callable[[], Any], name: str = "pull-timer"):
        super().__init__(name=name)
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")
        self.interval_s = interval_s
        self.handler = handler
        self.s_stop = threading.Event()
        self._lock = threading.Lock()
        self._next_tick = time.monotonic() + interval_s

    def stop(self):
        self.s_stop.set()

    def reset_timer(self):
        with self._lock:
            self._next_tick = time.monotonic() + self.interval_s

    def run(self):
        while not self.s_stop.is_set():
            now = time.monotonic()
            with self._lock:
                next_tick = self._next_tick
                due = now >= next_tick
                if due:
                    self._next_tick = now + self.interval_s
            if due:
                try:
                    self.handler()
                except Exception:
                    logger.exception("Pull handler failed")
            else:
                self.s_stop.wait(next_tick - now)

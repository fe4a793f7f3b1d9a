import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Tuple

logger = logging.getLogger(__name__)

_Task = Tuple[Callable[..., Any], Tuple[Any, ...], Future]


class Dispatcher(threading.Thread):
    """Runs submitted tasks one at a time on a single accessory-local thread.

    Every mutation of an accessory's reading, cache and level goes through
    here, so host queries, notifications and fetch completions never touch
    that state concurrently.
    """

    daemon = True

    def __init__(self, name: str = "accessory-dispatch", poll_timeout: float = 1.0):
        super().__init__(name=name)
        self._q: queue.Queue[_Task] = queue.Queue()
        self._stop_event = threading.Event()
        self._submit_lock = threading.Lock()
        self._poll_timeout = poll_timeout
        logger.debug("Dispatcher %s initialized", name)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        with self._submit_lock:
            if self._stop_event.is_set():
                raise RuntimeError(f"Dispatcher {self.name} is stopped")
            fut: Future = Future()
            self._q.put((fn, args, fut))
        return fut

    def stop(self) -> None:
        """Signal the dispatch loop to stop. Tasks still queued are cancelled."""
        logger.info("Stopping dispatcher %s", self.name)
        with self._submit_lock:
            self._stop_event.set()

    def run(self) -> None:
        logger.info("Starting dispatcher %s", self.name)

        while not self._stop_event.is_set():
            try:
                fn, args, fut = self._q.get(timeout=self._poll_timeout)
            except queue.Empty:
                continue
            self._execute(fn, args, fut)

        self._cancel_pending()
        logger.info("Dispatcher %s stopped", self.name)

    def _execute(self, fn: Callable[..., Any], args: Tuple[Any, ...], fut: Future) -> None:
        if not fut.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args)
        except Exception as e:
            logger.exception("Task %s failed on dispatcher %s", getattr(fn, "__name__", fn), self.name)
            fut.set_exception(e)
        else:
            fut.set_result(result)

    def _cancel_pending(self) -> None:
        while True:
            try:
                _, _, fut = self._q.get_nowait()
            except queue.Empty:
                return
            fut.cancel()

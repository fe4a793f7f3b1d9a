import threading
from collections import deque
from concurrent.futures import Future
from typing import Deque, List, Tuple, Union

from airquality_core.domain.ports import FetchResponse


class FakeFetcher:
    """Fetcher that completes with scripted responses or errors.

    With ``manual=True`` the futures are left pending until ``complete`` is
    called, which lets a test observe the query while a fetch is in flight.
    """

    def __init__(self, *outcomes: Union[str, FetchResponse, Exception], manual: bool = False):
        self._outcomes: Deque[Union[str, FetchResponse, Exception]] = deque(outcomes)
        self.manual = manual
        self.calls = 0
        self.closed = False
        self.pending: List[Future] = []
        self._lock = threading.Lock()

    def queue(self, *outcomes: Union[str, FetchResponse, Exception]) -> None:
        self._outcomes.extend(outcomes)

    def fetch(self) -> "Future[FetchResponse]":
        with self._lock:
            self.calls += 1
            fut: Future = Future()
            if self.manual:
                self.pending.append(fut)
                return fut
            self._resolve(fut, self._outcomes.popleft())
            return fut

    def complete(self, outcome: Union[str, FetchResponse, Exception]) -> None:
        with self._lock:
            fut = self.pending.pop(0)
        self._resolve(fut, outcome)

    @staticmethod
    def _resolve(fut: Future, outcome: Union[str, FetchResponse, Exception]) -> None:
        if isinstance(outcome, Exception):
            fut.set_exception(outcome)
        elif isinstance(outcome, FetchResponse):
            fut.set_result(outcome)
        else:
            fut.set_result(FetchResponse(status_code=200, body=outcome))

    def close(self) -> None:
        self.closed = True


class RecordingStore:
    """CharacteristicStore that records every pushed value."""

    def __init__(self):
        self.updates: List[Tuple[str, Union[int, float]]] = []
        self._lock = threading.Lock()

    def update(self, field_name: str, value: Union[int, float]) -> None:
        with self._lock:
            self.updates.append((field_name, value))

    def last(self, field_name: str) -> Union[int, float, None]:
        with self._lock:
            for name, value in reversed(self.updates):
                if name == field_name:
                    return value
        return None

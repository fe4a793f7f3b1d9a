import logging
from concurrent.futures import Future
from functools import partial
from typing import Any, Callable, Mapping, Optional, Union

from airquality_core.application.ingest_reading import (
    apply_notification,
    parse_number,
    refresh_from_document,
)
from airquality_core.domain.cache import StatusCache
from airquality_core.domain.errors import AirQualityError, TransportError
from airquality_core.domain.models import (
    AIR_QUALITY,
    HAP_CHARACTERISTICS,
    SensorReading,
    ThresholdTable,
    resolve_field,
)
from airquality_core.domain.ports import CharacteristicStore, FetchResponse, Fetcher

from .dispatch import Dispatcher
from .poller import PullTimer

log = logging.getLogger(__name__)

Number = Union[int, float]


def _follow_task(task: Future, result: Future) -> None:
    if result.done():
        return
    if task.cancelled():
        result.set_exception(TransportError("accessory stopped before the query ran"))
    elif task.exception() is not None:
        result.set_exception(task.exception())


class AirQualityService:
    """State owner for one air quality accessory.

    Holds the reading, the status cache and the breakpoints. Every method
    that reads or writes them runs on the accessory's dispatcher; callers
    get a ``Future`` back.

    Flow for a host query:
    1. cache fresh -> resolve with the cached value
    2. otherwise start a fetch; its completion is queued back on the
       dispatcher, which refreshes the reading, marks the cache and resolves
    3. a failed fetch fails the query and leaves the cache stale
    """

    def __init__(
        self,
        *,
        name: str,
        fetcher: Fetcher,
        cache: StatusCache,
        thresholds: ThresholdTable,
        dispatcher: Dispatcher,
        store: Optional[CharacteristicStore] = None,
    ):
        self.name = name
        self.reading = SensorReading()
        self.pull_timer: Optional[PullTimer] = None
        self._fetcher = fetcher
        self._cache = cache
        self._thresholds = thresholds
        self._dispatcher = dispatcher
        self._store = store

    def attach_store(self, store: CharacteristicStore) -> None:
        self._store = store

    def identify(self) -> None:
        log.info("[%s] Identify requested!", self.name)

    # ── host queries ──────────────────────────────────────────────
    def get_state(self, field_name: str) -> "Future[Number]":
        if field_name not in HAP_CHARACTERISTICS:
            raise KeyError(field_name)
        result: Future = Future()
        self._submit_for(result, self._query, field_name, result)
        return result

    def _submit_for(self, result: Future, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn`` on the dispatcher; ``result`` fails if it never runs."""
        try:
            task = self._dispatcher.submit(fn, *args)
        except RuntimeError:
            log.warning("[%s] Accessory is shutting down, dropping query", self.name)
            if not result.done():
                result.set_exception(TransportError("accessory is shutting down"))
            return
        task.add_done_callback(partial(_follow_task, result=result))

    def _query(self, field_name: str, result: Future) -> None:
        if not self._cache.should_refresh():
            value = self.reading.value_of(field_name)
            log.debug(
                "[%s] get_state() returning cached value %s%s",
                self.name,
                value,
                " (infinite cache)" if self._cache.is_infinite() else "",
            )
            result.set_result(value)
            return

        try:
            fetched = self._fetcher.fetch()
        except Exception as e:
            log.error("[%s] get_state() could not start fetch: %s", self.name, e)
            result.set_exception(e)
            return
        fetched.add_done_callback(
            lambda f: self._submit_for(result, self._on_fetched, f, field_name, result)
        )

    def _on_fetched(self, fetched: "Future[FetchResponse]", field_name: str, result: Future) -> None:
        if self.pull_timer is not None:
            self.pull_timer.reset_timer()

        try:
            response = fetched.result()
            self.reading = refresh_from_document(self.reading, response.body, self._thresholds)
        except AirQualityError as e:
            log.warning("[%s] get_state() failed: %s", self.name, e)
            result.set_exception(e)
            return
        except Exception as e:
            log.exception("[%s] get_state() failed unexpectedly", self.name)
            result.set_exception(e)
            return

        log.debug("[%s] PM10 is currently at %s", self.name, self.reading.pm10)
        log.debug("[%s] PM2.5 is currently at %s", self.name, self.reading.pm25)
        log.debug("[%s] AirQuality is currently at %s", self.name, self.reading.air_quality.name)

        self._cache.mark_refreshed()
        result.set_result(self.reading.value_of(field_name))

    # ── notifications ─────────────────────────────────────────────
    def handle_notification(self, body: Mapping[str, Any]) -> Future:
        return self._dispatcher.submit(self._apply_notification, dict(body))

    def _apply_notification(self, body: Mapping[str, Any]) -> bool:
        characteristic = str(body.get("characteristic", ""))
        value = body.get("value")

        updated = apply_notification(self.reading, characteristic, value, self._thresholds)
        if updated is None:
            return False

        self.reading = updated
        log.debug("[%s] Updating '%s' to new value: %s", self.name, characteristic, value)

        field_name = resolve_field(characteristic)
        if field_name != AIR_QUALITY and parse_number(value) is not None:
            self._push(field_name, self.reading.value_of(field_name))
        self._push(AIR_QUALITY, self.reading.value_of(AIR_QUALITY))
        return True

    # ── pulling ───────────────────────────────────────────────────
    def poll(self) -> Future:
        """Refresh through the cache and push every characteristic to the host."""
        done: Future = Future()

        def _after_query(query: Future) -> None:
            error = query.exception()
            if error is not None:
                log.warning("[%s] Pull failed: %s", self.name, error)
                done.set_result(False)
                return
            try:
                pushed = self._dispatcher.submit(self._push_all)
            except RuntimeError:
                done.set_result(False)
                return
            pushed.add_done_callback(
                lambda f: done.set_result(not f.cancelled() and f.exception() is None)
            )

        self.get_state(AIR_QUALITY).add_done_callback(_after_query)
        return done

    def _push_all(self) -> None:
        for field_name in HAP_CHARACTERISTICS:
            self._push(field_name, self.reading.value_of(field_name))

    def _push(self, field_name: Optional[str], value: Number) -> None:
        if self._store is None or field_name is None:
            return
        self._store.update(field_name, value)

    def close(self) -> None:
        if self.pull_timer is not None:
            self.pull_timer.stop()
        self._dispatcher.stop()
        self._fetcher.close()

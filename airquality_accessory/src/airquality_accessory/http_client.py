import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import requests
from airquality_core.config.parsers import UrlProperty
from airquality_core.domain.errors import HttpStatusError, TransportError
from airquality_core.domain.ports import FetchResponse

logger = logging.getLogger(__name__)


def is_http_success_code(status_code: int) -> bool:
    return 200 <= status_code < 300


class HttpFetcher:
    """Fetches the status document without blocking the caller.

    Requests run on a small worker pool; the returned future fails with
    ``TransportError`` (or ``HttpStatusError`` for non-2xx responses).
    """

    def __init__(
        self,
        url_property: UrlProperty,
        session: Optional[requests.Session] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.url_property = url_property
        self._session = session or requests.Session()
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="http-fetch")

        logger.info("Initializing HTTP fetcher: %s %s", url_property.method, url_property.url)

    def fetch(self) -> "Future[FetchResponse]":
        return self._executor.submit(self._request)

    def _request(self) -> FetchResponse:
        prop = self.url_property
        auth = (prop.auth.username, prop.auth.password) if prop.auth else None
        try:
            response = self._session.request(
                prop.method,
                prop.url,
                headers=prop.headers or None,
                data=prop.body,
                auth=auth,
                verify=prop.strict_ssl,
                timeout=prop.timeout,
            )
        except requests.RequestException as e:
            logger.debug("Request to %s failed: %s", prop.url, e)
            raise TransportError(str(e) or type(e).__name__) from e

        if not is_http_success_code(response.status_code):
            raise HttpStatusError(response.status_code)

        return FetchResponse(status_code=response.status_code, body=response.text)

    def close(self) -> None:
        logger.info("Closing HTTP fetcher")
        self._executor.shutdown(wait=False)
        self._session.close()

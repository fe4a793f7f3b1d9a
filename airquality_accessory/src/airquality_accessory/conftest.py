from typing import Iterator

import pytest

from airquality_accessory.dispatch import Dispatcher
from airquality_accessory.utils import fake_fetcher, recording_store  # noqa: F401


@pytest.fixture()
def dispatcher() -> Iterator[Dispatcher]:
    d = Dispatcher(name="test-dispatch", poll_timeout=0.05)
    d.start()
    yield d
    d.stop()
    d.join(timeout=1.0)

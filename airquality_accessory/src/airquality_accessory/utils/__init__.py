import pytest

from airquality_accessory.utils.mocks import FakeFetcher, RecordingStore


@pytest.fixture()
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture()
def recording_store():
    return RecordingStore()

from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Union


@dataclass(frozen=True)
class FetchResponse:
    status_code: int
    body: str


class Fetcher(Protocol):
    def fetch(self) -> "Future[FetchResponse]": ...

    def close(self) -> None: ...


class CharacteristicStore(Protocol):
    def update(self, field_name: str, value: Union[int, float]) -> None: ...


class NotificationHandler(Protocol):
    def __call__(self, body: Mapping[str, Any]) -> Any: ...

import hmac
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Union

from airquality_core.domain.ports import NotificationHandler
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

log = logging.getLogger(__name__)


class NotificationIn(BaseModel):
    characteristic: str = Field(..., min_length=1)
    value: Union[float, str]


@dataclass
class Registration:
    password: Optional[str]
    handler: NotificationHandler


class NotificationRegistry:
    """notification id -> (password, handler)"""

    def __init__(self):
        self._registrations: Dict[str, Registration] = {}
        self._lock = threading.Lock()

    def register(
        self, notification_id: str, password: Optional[str], handler: NotificationHandler
    ) -> None:
        with self._lock:
            if notification_id in self._registrations:
                log.warning("Notification id '%s' is registered twice, replacing", notification_id)
            self._registrations[notification_id] = Registration(password or None, handler)
        log.info("Registered notification handler for id '%s'", notification_id)

    def register_if_defined(
        self,
        notification_id: Optional[str],
        password: Optional[str],
        handler: NotificationHandler,
    ) -> bool:
        if not notification_id:
            return False
        self.register(notification_id, password, handler)
        return True

    def unregister(self, notification_id: str) -> None:
        with self._lock:
            self._registrations.pop(notification_id, None)

    def get(self, notification_id: str) -> Optional[Registration]:
        with self._lock:
            return self._registrations.get(notification_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._registrations)


registry = NotificationRegistry()

router = APIRouter()


def get_registry() -> NotificationRegistry:
    return registry


@router.get("/ping")
def ping():
    return {"status": "ok"}


@router.post("/notifications/{notification_id}")
def notify(
    notification_id: str,
    notification: NotificationIn,
    authorization: Optional[str] = Header(None),
    reg: NotificationRegistry = Depends(get_registry),
):
    registration = reg.get(notification_id)
    if registration is None:
        raise HTTPException(status_code=404, detail=f"Unknown notification id '{notification_id}'")

    if registration.password is not None and not hmac.compare_digest(
        (authorization or "").encode(), registration.password.encode()
    ):
        log.warning("Rejected notification for '%s': bad password", notification_id)
        raise HTTPException(status_code=401, detail="Invalid notification password")

    registration.handler(notification.model_dump())
    return {"status": "ok"}


def create_app() -> FastAPI:
    app = FastAPI(title="airquality notifications")
    app.include_router(router)
    return app

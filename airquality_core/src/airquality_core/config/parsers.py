import re
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from airquality_core.domain.errors import ConfigurationError
from airquality_core.domain.models import resolve_field

HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"}


class BasicAuth(BaseModel):
    username: str
    password: str = ""


class UrlProperty(BaseModel):
    url: str
    method: str = "GET"
    body: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    auth: Optional[BasicAuth] = None
    strict_ssl: bool = True
    timeout: float = Field(10.0, gt=0)

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        match = re.match(r"^(https?)://([^/?#:]+)", v.strip(), re.IGNORECASE)
        if not match:
            raise ValueError(f"'{v}' is not an http(s) URL with a host")
        return v.strip()

    @field_validator("method")
    @classmethod
    def _check_method(cls, v: str) -> str:
        method = v.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method '{v}'")
        return method


class MqttSubscription(BaseModel):
    topic: str = Field(..., min_length=1)
    characteristic: str
    message_pattern: Optional[str] = None
    pattern_group: int = Field(1, ge=0)

    @field_validator("characteristic")
    @classmethod
    def _check_characteristic(cls, v: str) -> str:
        if resolve_field(v) is None:
            raise ValueError(f"unknown characteristic '{v}'")
        return v

    @field_validator("message_pattern")
    @classmethod
    def _check_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"invalid message_pattern: {e}") from e
        return v


class MqttOptions(BaseModel):
    host: str = Field(..., min_length=1)
    port: int = Field(1883, gt=0, lt=65536)
    client_id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    keepalive: int = Field(60, gt=0)
    qos: int = Field(1, ge=0, le=2)
    subscriptions: List[MqttSubscription] = Field(default_factory=list)


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors()
    )


def parse_url_property(value: Union[str, Mapping[str, Any], None]) -> UrlProperty:
    """Validate a status URL given either as a plain string or as a request object."""
    if value is None or value == "":
        raise ConfigurationError("Property 'getUrl' is required!")
    raw = {"url": value} if isinstance(value, str) else dict(value)
    try:
        return UrlProperty.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_format_errors(e)) from e


def parse_mqtt_options(value: Mapping[str, Any]) -> MqttOptions:
    if not isinstance(value, Mapping):
        raise ConfigurationError("MQTT options must be an object")
    try:
        return MqttOptions.model_validate(dict(value))
    except ValidationError as e:
        raise ConfigurationError(_format_errors(e)) from e

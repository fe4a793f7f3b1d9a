from unittest.mock import Mock, call, patch

import pytest
from airquality_core.config.parsers import parse_mqtt_options

from airquality_accessory.mqtt_subscriber import MQTTSubscriber

OPTIONS = {
    "host": "broker.local",
    "subscriptions": [
        {"topic": "home/air/pm10", "characteristic": "PM10Density"},
        {
            "topic": "home/air/json",
            "characteristic": "PM2.5Density",
            "message_pattern": r'"pm25":\s*([\d.]+)',
        },
    ],
}


@pytest.fixture()
def mock_client():
    with patch("paho.mqtt.client.Client") as client_cls:
        client_cls.return_value.connect.return_value = 0
        client_cls.return_value.loop_start.return_value = None
        yield client_cls


def make_subscriber(handler=None, **overrides) -> MQTTSubscriber:
    return MQTTSubscriber(parse_mqtt_options({**OPTIONS, **overrides}), handler or Mock())


def message(topic: str, payload: bytes) -> Mock:
    return Mock(topic=topic, payload=payload)


def test_connect_success(mock_client):
    subscriber = make_subscriber()
    assert subscriber.connect() is True

    mock_client.return_value.connect.assert_called_once_with("broker.local", 1883, 60)
    mock_client.return_value.loop_start.assert_called_once()


def test_connect_failure(mock_client):
    mock_client.return_value.connect.return_value = 1
    subscriber = make_subscriber()

    assert subscriber.connect() is False
    mock_client.return_value.loop_start.assert_not_called()


def test_connect_exception_is_logged(mock_client):
    mock_client.return_value.connect.side_effect = OSError("unreachable")
    subscriber = make_subscriber()
    assert subscriber.connect() is False


def test_credentials_are_set(mock_client):
    make_subscriber(username="user", password="pw")
    mock_client.return_value.username_pw_set.assert_called_once_with("user", "pw")


def test_on_connect_subscribes_to_every_topic(mock_client):
    subscriber = make_subscriber()
    client = mock_client.return_value

    subscriber._on_connect(client, None, None, 0)

    assert subscriber.is_connected()
    client.subscribe.assert_has_calls(
        [call("home/air/pm10", qos=1), call("home/air/json", qos=1)], any_order=True
    )


def test_on_connect_failure(mock_client):
    subscriber = make_subscriber()
    client = mock_client.return_value

    subscriber._on_connect(client, None, None, 5)

    assert not subscriber.is_connected()
    client.subscribe.assert_not_called()


def test_on_disconnect(mock_client):
    subscriber = make_subscriber()
    subscriber._connected = True

    subscriber._on_disconnect(mock_client.return_value, None, None, 7)

    assert not subscriber.is_connected()
    assert subscriber.get_disconnect_reason() == 7


def test_plain_payload_becomes_notification(mock_client):
    handler = Mock()
    subscriber = make_subscriber(handler)

    subscriber._on_message(None, None, message("home/air/pm10", b" 42.5\n"))

    handler.assert_called_once_with({"characteristic": "PM10Density", "value": "42.5"})


def test_message_pattern_extracts_value(mock_client):
    handler = Mock()
    subscriber = make_subscriber(handler)

    subscriber._on_message(None, None, message("home/air/json", b'{"pm10": 3, "pm25": 17.2}'))

    handler.assert_called_once_with({"characteristic": "PM2.5Density", "value": "17.2"})


def test_non_matching_payload_is_dropped(mock_client):
    handler = Mock()
    subscriber = make_subscriber(handler)

    subscriber._on_message(None, None, message("home/air/json", b'{"temp": 20}'))

    handler.assert_not_called()


def test_unknown_topic_is_ignored(mock_client):
    handler = Mock()
    subscriber = make_subscriber(handler)

    subscriber._on_message(None, None, message("home/other", b"1"))

    handler.assert_not_called()


def test_handler_errors_do_not_escape(mock_client):
    handler = Mock(side_effect=RuntimeError("dispatcher stopped"))
    subscriber = make_subscriber(handler)

    subscriber._on_message(None, None, message("home/air/pm10", b"1"))

    handler.assert_called_once()


def test_close(mock_client):
    subscriber = make_subscriber()
    subscriber._connected = True

    subscriber.close()

    mock_client.return_value.loop_stop.assert_called_once()
    mock_client.return_value.disconnect.assert_called_once()
    assert not subscriber.is_connected()

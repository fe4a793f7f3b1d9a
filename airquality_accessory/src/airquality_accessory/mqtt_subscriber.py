import logging
import re
from typing import Dict, List, Optional, Pattern, Tuple

import paho.mqtt.client as paho
from airquality_core.config.parsers import MqttOptions, MqttSubscription
from airquality_core.domain.ports import NotificationHandler

logger = logging.getLogger(__name__)


class MQTTSubscriber:
    """Feeds MQTT messages into the accessory's notification handler.

    Each configured subscription maps a topic to a characteristic. The
    payload (or the ``message_pattern`` group extracted from it) becomes the
    notification value.
    """

    def __init__(self, options: MqttOptions, handler: NotificationHandler, client_id: Optional[str] = None):
        self.options = options
        self.handler = handler
        self.client_id = options.client_id or client_id or "airquality-accessory"
        self._connected = False
        self._disconnected_rc: Optional[int] = None
        self._routes: Dict[str, List[Tuple[MqttSubscription, Optional[Pattern[str]]]]] = {}
        for sub in options.subscriptions:
            pattern = re.compile(sub.message_pattern) if sub.message_pattern else None
            self._routes.setdefault(sub.topic, []).append((sub, pattern))

        self._client = paho.Client(
            paho.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            clean_session=True,
            userdata=self,
            protocol=paho.MQTTv311,
        )
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        if options.username:
            self._client.username_pw_set(options.username, options.password)

        logger.info(
            "Initializing MQTT subscriber: host=%s, port=%s, topics=%s, client_id=%s",
            options.host,
            options.port,
            list(self._routes),
            self.client_id,
        )

    def connect(self) -> bool:
        """Connect to the MQTT broker and start the network loop."""
        try:
            result = self._client.connect(self.options.host, self.options.port, self.options.keepalive)
            if result != paho.MQTT_ERR_SUCCESS:
                logger.error("Failed to connect to MQTT broker: %s", result)
                return False

            self._client.loop_start()
            logger.info("Connecting to MQTT broker %s:%s", self.options.host, self.options.port)
            return True
        except Exception as e:
            logger.error("Exception during MQTT connection: %s", e)
            return False

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code != 0:
            self._connected = False
            logger.error("Failed to connect to MQTT broker, return code: %s", reason_code)
            return
        self._connected = True
        logger.info("Successfully connected to MQTT broker")
        for topic in self._routes:
            client.subscribe(topic, qos=self.options.qos)
            logger.info("Subscribed to %s", topic)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._connected = False
        self._disconnected_rc = reason_code
        logger.warning("Disconnected from MQTT broker, return code: %s", reason_code)

    def _on_message(self, client, userdata, msg) -> None:
        routes = self._routes.get(msg.topic, [])
        if not routes:
            logger.debug("Ignoring message on unsubscribed topic %s", msg.topic)
            return

        try:
            payload = msg.payload.decode()
        except UnicodeDecodeError:
            logger.warning("Dropping non-UTF-8 payload on topic %s", msg.topic)
            return

        for sub, pattern in routes:
            value = payload.strip()
            if pattern is not None:
                match = pattern.search(payload)
                if match is None:
                    logger.warning(
                        "Payload on %s did not match pattern %s: %r", msg.topic, pattern.pattern, payload
                    )
                    continue
                try:
                    value = match.group(sub.pattern_group)
                except IndexError:
                    logger.warning("Pattern %s has no group %s", pattern.pattern, sub.pattern_group)
                    continue

            try:
                self.handler({"characteristic": sub.characteristic, "value": value})
            except Exception:
                logger.exception("Failed to process message on topic %s", msg.topic)

    def is_connected(self) -> bool:
        return self._connected

    def get_disconnect_reason(self) -> Optional[int]:
        return self._disconnected_rc

    def close(self) -> None:
        logger.info("Closing MQTT connection")
        self._client.loop_stop()
        self._client.disconnect()
        self._connected = False

"""
MQTT Outlet Adapter

Drives smart outlets and dimmers behind an MQTT gateway (zigbee2mqtt,
zwave-js-ui and similar) from a channel value.
"""

import json
import logging
from typing import Any

from reef.domain.exceptions import DeviceError
from reef.risp.values import Boolean, Number, Value

logger = logging.getLogger(__name__)


class MQTTOutletAdapter:
    """
    MQTT protocol adapter for output channels.

    Publishes ``{"state": "ON"|"OFF"}`` for booleans and adds ``"level"``
    for numbers, so a dimmer receives the raw program result.
    """

    def __init__(self, device_name: str, mqtt_client: Any, topic: str, qos: int = 1, retain: bool = True):
        """
        Initialize MQTT adapter.

        Args:
            device_name: Channel name
            mqtt_client: Connected paho client
            topic: Command topic, e.g. ``zigbee2mqtt/return_pump/set``
            qos: Publish QoS
            retain: Retain the last command on the broker
        """
        self.device_name = device_name
        self.mqtt_client = mqtt_client
        self.topic = topic
        self.qos = qos
        self.retain = retain
        self.last_payload: dict[str, Any] | None = None

    @staticmethod
    def build_payload(value: Value) -> dict[str, Any]:
        if isinstance(value, Boolean):
            return {"state": "ON" if value.value else "OFF"}
        if isinstance(value, Number):
            return {"state": "ON" if value.value != 0 else "OFF", "level": value.value}
        raise DeviceError(
            f"MQTT outlet cannot be driven by a {value.kind} value",
            detail={"kind": value.kind},
        )

    def write(self, value: Value) -> None:
        payload = self.build_payload(value)
        result = self.mqtt_client.publish(self.topic, json.dumps(payload), qos=self.qos, retain=self.retain)
        rc = getattr(result, "rc", 0)
        if rc != 0:
            raise DeviceError(
                f"MQTT publish to {self.topic} failed (rc={rc})",
                detail={"topic": self.topic, "rc": rc},
            )
        if payload != self.last_payload:
            logger.info("MQTT: %s -> %s on %s", self.device_name, payload, self.topic)
        self.last_payload = payload

    def get_device(self) -> str:
        return f"mqtt://{self.topic}"

    def cleanup(self) -> None:
        """Nothing to release; the shared client is closed by the driver factory."""

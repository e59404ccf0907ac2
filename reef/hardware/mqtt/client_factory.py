"""
Helpers for constructing and connecting paho-mqtt clients.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import paho.mqtt.client as mqtt

from reef.domain.exceptions import DeviceError

logger = logging.getLogger(__name__)


def create_mqtt_client(client_id: str = "", **kwargs: Any) -> mqtt.Client:
    """
    Build an MQTT client using the paho-mqtt 2.x callback API.

    Args:
        client_id: Optional client identifier.
        kwargs: Extra keyword arguments forwarded to the client constructor.
    """
    client_kwargs: Dict[str, Any] = {"client_id": client_id or ""}
    # Keep MQTT v3.1.1 protocol by default for broker compatibility.
    client_kwargs["protocol"] = kwargs.pop("protocol", mqtt.MQTTv311)
    client_kwargs.update(kwargs)
    return mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, **client_kwargs)


def connect_mqtt_client(host: str, port: int = 1883, client_id: str = "reef-controller") -> mqtt.Client:
    """
    Create a client, connect it and start its network loop thread.

    Raises:
        DeviceError: if the broker cannot be reached.
    """
    client = create_mqtt_client(client_id)
    try:
        client.connect(host, port)
    except OSError as exc:
        raise DeviceError(
            f"Cannot connect to MQTT broker {host}:{port}: {exc}",
            detail={"host": host, "port": port},
        ) from exc
    client.loop_start()
    logger.info("Connected to MQTT broker %s:%s", host, port)
    return client

"""Message bus protocol and the paho-mqtt runtime behind it.

Bus messages are a JSON array of fields. Components usually put a single
JSON-encoded object in ``fields[0]``.
"""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from pyyoda.config import YodaConfig
from pyyoda.exceptions import YodaBusError

BusHandler = Callable[[list[Any]], None]


class MessageType(enum.Enum):
    """Delivery class of a posted message."""

    INSTANT = "instant"
    """Best effort, not kept by the broker."""
    PERSIST = "persist"
    """Kept by the broker and replayed to late subscribers."""


class MessageBus(Protocol):
    """Structural bus interface used by device adapters.

    Having a protocol here makes it easy to pass in-process test doubles
    while keeping the production implementation (`MqttBus`) concrete.
    """

    def subscribe(self, topic: str, handler: BusHandler) -> None:
        ...

    def unsubscribe(self, topic: str) -> None:
        ...

    def post(self, topic: str, fields: Sequence[Any], msgtype: MessageType = MessageType.INSTANT) -> None:
        ...


def encode_bus_payload(fields: Sequence[Any]) -> bytes:
    """Serialize message fields into the wire format."""
    return json.dumps(list(fields), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode_bus_payload(payload: bytes) -> list[Any]:
    """Parse wire bytes back into a list of message fields."""
    try:
        fields = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise YodaBusError(f"Bus payload is not JSON: {exc}") from exc
    if not isinstance(fields, list):
        raise YodaBusError("Bus payload is not a JSON array")
    return fields


class MqttBus:
    """Threaded paho-mqtt runtime that delivers messages onto an asyncio loop."""

    def __init__(
        self,
        config: YodaConfig,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._handlers: dict[str, BusHandler] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the network loop is running."""
        return self._running

    @property
    def is_connected(self) -> bool:
        client = self._client
        return client is not None and client.is_connected()

    def start(self) -> None:
        """Connect to the broker and start the network loop.

        The connection is established in the background; paho retries
        with a delay capped by ``bus_reconnect_interval``.
        """
        self.stop()
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        config = self._config
        self._logger.debug(
            "Bus start requested host=%s port=%s client_id=%s",
            config.bus_host,
            config.bus_port,
            config.bus_client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=config.bus_client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        client.reconnect_delay_set(min_delay=1, max_delay=max(1, int(config.bus_reconnect_interval)))

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("Bus connect failed: %s", reason_code)
                return
            self._logger.debug("Bus connected reason=%s", reason_code)
            for topic in list(self._handlers):
                self._logger.debug("Bus subscribing topic=%s", topic)
                c.subscribe(topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                fields = decode_bus_payload(msg.payload)
                self._logger.debug("Received topic=%s fields=%s", msg.topic, fields)
                loop = self._loop
                if loop is None:
                    return
                loop.call_soon_threadsafe(self._dispatch, msg.topic, fields)
            except Exception:
                self._logger.debug("Bus payload parse failure topic=%s", msg.topic, exc_info=True)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("Bus disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect_async(config.bus_host, config.bus_port, keepalive=config.bus_keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("Bus network loop started")

    def stop(self) -> None:
        """Stop and disconnect the current client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("Bus disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("Bus network loop stopped")

    def _dispatch(self, topic: str, fields: list[Any]) -> None:
        handler = self._handlers.get(topic)
        if handler is None:
            self._logger.debug("No handler for topic=%s", topic)
            return
        try:
            handler(fields)
        except Exception:
            self._logger.warning("Bus handler for %s failed", topic, exc_info=True)

    def subscribe(self, topic: str, handler: BusHandler) -> None:
        self._handlers[topic] = handler
        client = self._client
        if client is not None and client.is_connected():
            client.subscribe(topic, qos=0)

    def unsubscribe(self, topic: str) -> None:
        if self._handlers.pop(topic, None) is None:
            return
        client = self._client
        if client is not None and client.is_connected():
            client.unsubscribe(topic)

    def post(self, topic: str, fields: Sequence[Any], msgtype: MessageType = MessageType.INSTANT) -> None:
        """Publish *fields* on *topic* without waiting for delivery."""
        client = self._client
        if client is None or not self._running:
            raise YodaBusError("Bus is not running", topic=topic)
        info = client.publish(
            topic,
            encode_bus_payload(fields),
            qos=0,
            retain=msgtype is MessageType.PERSIST,
        )
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise YodaBusError(
                f"Publish to {topic} failed: {mqtt.error_string(info.rc)}",
                topic=topic,
            )

"""Remote channel over MQTT.

Two topics under a configurable prefix:

  - ``<prefix>/notify``  outbound human-readable notifications
  - ``<prefix>/v0``      inbound virtual-pin writes (``"0"`` / ``"1"``)

paho-mqtt runs its network loop on its own thread; inbound writes are
handed to the asyncio loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from doorlock._constants import NOTIFY_TOPIC_SUFFIX, VIRTUAL_PIN_TOPIC_SUFFIX
from doorlock.config import DoorlockConfig
from doorlock.exceptions import DoorlockConfigError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteTopics:
    """Topic names derived from a prefix."""

    notify: str
    virtual_pin: str

    @classmethod
    def from_prefix(cls, prefix: str) -> RemoteTopics:
        base = prefix.strip("/")
        return cls(
            notify=f"{base}/{NOTIFY_TOPIC_SUFFIX}",
            virtual_pin=f"{base}/{VIRTUAL_PIN_TOPIC_SUFFIX}",
        )


def decode_virtual_write(payload: bytes) -> str:
    """Decode an inbound virtual-pin payload to its text value."""
    return payload.decode("utf-8", errors="replace").strip()


class LoggingNotifier:
    """Notification sink used when no remote channel is configured."""

    def notify(self, message: str) -> None:
        _logger.info("notify: %s", message)


class MqttRemoteChannel:
    """Threaded paho-mqtt client acting as notification sink and virtual-pin source."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        topics: RemoteTopics,
        on_virtual_write: Callable[[str], None] | None = None,
        keepalive: int = 120,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._topics = topics
        self._on_virtual_write = on_virtual_write
        self._keepalive = keepalive
        self._logger = logger or _logger
        self._client: mqtt.Client | None = None
        self._running = False

    @classmethod
    def from_config(cls, config: DoorlockConfig, *, loop: asyncio.AbstractEventLoop) -> MqttRemoteChannel:
        if not config.mqtt_host:
            raise DoorlockConfigError("mqtt_host is required for the remote channel")
        return cls(
            loop=loop,
            topics=RemoteTopics.from_prefix(config.mqtt_topic_prefix),
            keepalive=config.mqtt_keepalive,
        )

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def topics(self) -> RemoteTopics:
        return self._topics

    def set_virtual_write_handler(self, handler: Callable[[str], None]) -> None:
        self._on_virtual_write = handler

    # ------------------------------------------------------------------
    # NotificationPort
    # ------------------------------------------------------------------

    def notify(self, message: str) -> None:
        """Publish *message*; dropped with a debug log while disconnected."""
        client = self._client
        if client is None or not self._running:
            self._logger.debug("Remote channel not running; notification dropped: %s", message)
            return
        client.publish(self._topics.notify, message, qos=0)

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _on_connect(
        self,
        c: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if reason_code.value != 0:
            self._logger.warning("Remote channel connect failed: %s", reason_code)
            return
        self._logger.info("Remote channel ready.")
        c.subscribe(self._topics.virtual_pin, qos=0)

    def _on_message(self, _c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        handler = self._on_virtual_write
        if handler is None or msg.topic != self._topics.virtual_pin:
            return
        value = decode_virtual_write(msg.payload)
        self._logger.debug("Virtual pin write topic=%s value=%r", msg.topic, value)
        self._loop.call_soon_threadsafe(handler, value)

    def _on_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _disconnect_flags: Any,
        reason_code: Any,
        _properties: Any,
    ) -> None:
        if self._running:
            self._logger.warning("Remote channel disconnected: %s", reason_code)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        host: str,
        port: int = 1883,
        *,
        username: str | None = None,
        password: str | None = None,
    ) -> None:
        """Connect and subscribe to the virtual-pin topic."""
        self.stop()
        client_id = f"doorlock-{secrets.token_hex(4)}"
        self._logger.debug("Remote channel start host=%s port=%s client_id=%s", host, port, client_id)

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if username:
            client.username_pw_set(username, password)

        client.on_connect = self._on_connect
        client.on_message = self._on_message
        client.on_disconnect = self._on_disconnect

        client.connect(host, port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True

    def stop(self) -> None:
        """Disconnect and stop the network loop if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("Remote channel network loop stopped")

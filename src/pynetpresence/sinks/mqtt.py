"""MQTT presence sink.

Publishes one retained ``ON``/``OFF`` message per identity so home automation
hubs can bind binary occupancy sensors to the topics. The paho network loop
runs in its own thread; :meth:`MqttPresenceSink.publish` is safe to call from
the asyncio loop.
"""

from __future__ import annotations

import dataclasses
import logging
import re
import threading
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from pynetpresence._constants import MQTT_DEFAULT_PREFIX, MQTT_PAYLOAD_OFF, MQTT_PAYLOAD_ON
from pynetpresence.exceptions import SinkError

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """``"Joe's iPhone"`` -> ``"joe_s_iphone"``."""
    slug = _SLUG_RE.sub("_", name.strip().lower()).strip("_")
    return slug or "unnamed"


@dataclasses.dataclass(frozen=True)
class MqttSinkConfig:
    """Broker connection settings for :class:`MqttPresenceSink`.

    Parameters
    ----------
    host : str
        Broker host name or address.
    port : int
        Broker port. Defaults to 1883.
    username, password : str or None
        Optional broker credentials.
    client_id : str
        MQTT client identifier.
    topic_prefix : str
        Topics are ``<topic_prefix>/<slug>/occupancy``.
    keepalive : int
        Keepalive in seconds.
    qos : int
        Publish QoS level.
    retain : bool
        Publish retained messages so late subscribers see the current state.
    tls : bool
        Enable TLS with the system trust store.
    """

    host: str
    port: int = 1883
    username: str | None = None
    password: str | None = None
    client_id: str = "pynetpresence"
    topic_prefix: str = MQTT_DEFAULT_PREFIX
    keepalive: int = 60
    qos: int = 1
    retain: bool = True
    tls: bool = False


class MqttPresenceSink:
    """Threaded paho-mqtt publisher for presence updates."""

    def __init__(
        self,
        config: MqttSinkConfig,
        *,
        client_factory: Callable[[], mqtt.Client] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or self._default_client
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        # Last payload per topic, replayed after every (re)connect.
        self._last: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    def topic_for(self, name: str) -> str:
        return f"{self._config.topic_prefix.rstrip('/')}/{slugify(name)}/occupancy"

    def _default_client(self) -> mqtt.Client:
        return mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._config.client_id,
            protocol=mqtt.MQTTv311,
        )

    def start(self) -> None:
        """Connect to the broker and start the network loop."""
        self.stop()
        config = self._config
        self._logger.debug(
            "MQTT sink start requested host=%s port=%s client_id=%s",
            config.host,
            config.port,
            config.client_id,
        )

        client = self._client_factory()
        client.enable_logger(self._logger)
        if config.username is not None:
            client.username_pw_set(config.username, config.password)
        if config.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected reason=%s", reason_code)
            with self._lock:
                pending = dict(self._last)
            for topic, payload in pending.items():
                c.publish(topic, payload, qos=config.qos, retain=config.retain)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_disconnect = on_disconnect

        client.connect(config.host, config.port, keepalive=config.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

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
            self._logger.debug("MQTT network loop stopped")

    def publish(self, name: str, present: bool) -> None:
        topic = self.topic_for(name)
        payload = MQTT_PAYLOAD_ON if present else MQTT_PAYLOAD_OFF
        with self._lock:
            self._last[topic] = payload

        client = self._client
        if client is None or not self._running:
            raise SinkError(f"MQTT sink not started; dropped update for {name!r}", sink="mqtt")
        info = client.publish(topic, payload, qos=self._config.qos, retain=self._config.retain)
        self._logger.debug("MQTT publish topic=%s payload=%s rc=%s", topic, payload, getattr(info, "rc", None))

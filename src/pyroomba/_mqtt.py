"""Broker connection to the robot's local MQTT server.

The robot runs an MQTT broker on its TLS port.  The BLID is used as
both client id and username, the robot password as password, and the
robot presents a self-signed certificate.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from pyroomba._constants import BROKER_PORT, SUBSCRIBE_TOPIC
from pyroomba._credential import build_tls_context
from pyroomba.exceptions import BrokerDisconnectedError, RoombaNetworkError
from pyroomba.models.identity import Credential


class BrokerListener(Protocol):
    """Receives broker callbacks, always on the event loop."""

    def on_connected(self) -> None:
        ...

    def on_disconnected(self, cause: BaseException) -> None:
        ...

    def on_message(self, topic: str, payload: bytes) -> None:
        ...


class BrokerConnection(Protocol):
    def start(self, client_id: str, credential: Credential) -> None:
        ...

    def stop(self) -> None:
        ...

    def publish(self, topic: str, payload: bytes) -> None:
        ...


BrokerFactory = Callable[[str, BrokerListener], BrokerConnection]
"""``(address, listener) -> BrokerConnection``."""


class RoombaMqttRuntime:
    """Threaded paho-mqtt runtime that reports back onto an asyncio loop."""

    def __init__(
        self,
        *,
        host: str,
        loop: asyncio.AbstractEventLoop,
        listener: BrokerListener,
        port: int = BROKER_PORT,
        keepalive: int = 60,
        logger: logging.Logger | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._loop = loop
        self._listener = listener
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, client_id: str, credential: Credential) -> None:
        """Connect and start the network loop.  Blocks until the TCP/TLS connect returns."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s client_id=%s",
            self._host,
            self._port,
            client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        client.username_pw_set(client_id, credential.secret)
        client.tls_set_context(build_tls_context())
        client.tls_insecure_set(True)

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                self._notify(
                    self._listener.on_disconnected,
                    BrokerDisconnectedError(f"Connection refused: {reason_code}", reason=str(reason_code)),
                )
                return
            self._logger.debug("MQTT connected successfully reason=%s", reason_code)
            c.subscribe(SUBSCRIBE_TOPIC, qos=0)
            self._notify(self._listener.on_connected)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self._notify(self._listener.on_message, msg.topic, bytes(msg.payload))

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if not self._running:
                return
            self._logger.debug("MQTT disconnected: %s", reason_code)
            self._notify(
                self._listener.on_disconnected,
                BrokerDisconnectedError(f"Connection lost: {reason_code}", reason=str(reason_code)),
            )

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            client.connect(self._host, self._port, keepalive=self._keepalive)
        except OSError as exc:
            raise RoombaNetworkError(
                f"MQTT connect to {self._host}:{self._port} failed: {exc}",
                host=self._host,
                port=self._port,
            ) from exc
        self._client = client
        self._running = True
        client.loop_start()
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def publish(self, topic: str, payload: bytes) -> None:
        client = self._client
        if client is None or not self._running:
            raise BrokerDisconnectedError("MQTT runtime is not running")
        info = client.publish(topic, payload, qos=0)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise BrokerDisconnectedError(
                f"Publish to {topic} failed: {mqtt.error_string(info.rc)}",
                reason=str(info.rc),
            )

    def _notify(self, callback: Callable[..., None], *args: Any) -> None:
        # paho calls back on its network thread; listeners expect the loop.
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)


def mqtt_broker_factory(
    *,
    loop: asyncio.AbstractEventLoop,
    port: int = BROKER_PORT,
    keepalive: int = 60,
) -> BrokerFactory:
    """Factory producing :class:`RoombaMqttRuntime` instances bound to *loop*."""

    def _create(address: str, listener: BrokerListener) -> BrokerConnection:
        return RoombaMqttRuntime(host=address, loop=loop, listener=listener, port=port, keepalive=keepalive)

    return _create

"""MQTT channel — publish-only client built on ``paho-mqtt``.

Every message is published with QoS 2 (exactly once) and the retain flag
set, so a subscriber that connects later still receives the last value.
Sessions are MQTT 3.1.1 clean sessions identified by the configured client
id.  Credentials are applied only when a username is configured and TLS only
when explicitly enabled.

Requires ``paho-mqtt`` >= 2.0 (callback API version 2).
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Callable

import paho.mqtt.client as mqtt

from groundstation.channels.base import BaseChannel
from groundstation.exceptions import (
    TransportAuthenticationError,
    TransportConnectionError,
    TransportError,
)
from groundstation.logging import get_logger

log = get_logger(__name__)

QOS_EXACTLY_ONCE = 2

# CONNACK reason codes (MQTT 5 numbering, which paho also uses for 3.1.1).
_AUTH_REFUSED = {134, 135}  # bad user name or password, not authorized


@dataclass(frozen=True)
class MqttSettings:
    """Cached broker settings.  ``username`` and ``password`` are ciphertext."""

    broker_host: str = ""
    broker_port: int = 1883
    use_tls: bool = False
    username: str = ""
    password: str = ""
    client_id: str = ""
    default_topic: str = ""


@dataclass(frozen=True)
class MqttMessage:
    topic: str
    payload: str
    qos: int = QOS_EXACTLY_ONCE
    retain: bool = True


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        clean_session=True,
        protocol=mqtt.MQTTv311,
    )


class MqttChannel(BaseChannel[MqttMessage]):
    """Publishes one message per call over a fresh broker connection."""

    CHANNEL_ID = "mqtt"

    def __init__(
        self,
        host: str,
        port: int,
        client_id: str,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
        timeout: float = 30.0,
        client_factory: Callable[[str], Any] | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._client_id = client_id
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout
        self._client_factory = client_factory or _default_client_factory

    @classmethod
    def from_settings(
        cls, settings: MqttSettings, reveal: Callable[[str, str], str], **kwargs: Any
    ) -> "MqttChannel":
        """Build a channel from a cached snapshot, decrypting credentials now."""
        return cls(
            settings.broker_host,
            settings.broker_port,
            settings.client_id,
            username=reveal("mqtt_username", settings.username),
            password=reveal("mqtt_password", settings.password),
            use_tls=settings.use_tls,
            **kwargs,
        )

    async def send(self, payload: MqttMessage, cancel: asyncio.Event | None = None) -> None:
        client: Any = None
        session: _SessionEvents | None = None
        log.debug("mqtt_pushing_message", topic=payload.topic, host=self._host, port=self._port)
        try:
            client = self._build_client()
            session = _SessionEvents(client)
            await self._step("connect", self._connect, client, session, cancel=cancel)
            await self._step("publish", self._publish, client, payload, cancel=cancel)
            await self._step("disconnect", self._disconnect, client, session, cancel=cancel)
        except TransportError as exc:
            log.error(
                "mqtt_send_failed",
                host=self._host,
                port=self._port,
                topic=payload.topic,
                error=exc.message,
            )
            raise
        finally:
            if session is not None:
                self._release(client, session.loop_started)

        log.info("mqtt_published", topic=payload.topic, qos=payload.qos, retain=payload.retain)

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _build_client(self) -> Any:
        client = self._client_factory(self._client_id)
        try:
            if self._username and self._username.strip():
                client.username_pw_set(self._username, self._password or None)
            if self._use_tls:
                client.tls_set()
        except (ValueError, OSError) as exc:
            raise TransportError(
                f"MQTT client setup failed: {exc}",
                channel=self.CHANNEL_ID,
                host=self._host,
                port=self._port,
                context={"use_tls": self._use_tls},
            ) from exc
        return client

    def _connect(self, client: Any, session: "_SessionEvents") -> None:
        try:
            client.connect(self._host, self._port)
        except OSError as exc:
            raise TransportConnectionError(
                self.CHANNEL_ID,
                self._host,
                self._port,
                reason=exc.strerror or str(exc),
                code=exc.errno,
            ) from exc
        client.loop_start()
        session.loop_started = True

        if not session.connected.wait(self._timeout):
            raise TransportConnectionError(
                self.CHANNEL_ID, self._host, self._port, reason="timed out waiting for CONNACK"
            )
        code = session.connack_code
        if code is not None and code.is_failure:
            if code.value in _AUTH_REFUSED:
                raise TransportAuthenticationError(
                    self.CHANNEL_ID, self._host, self._port, self._username
                )
            raise TransportError(
                f"Broker refused connection: {code}",
                channel=self.CHANNEL_ID,
                host=self._host,
                port=self._port,
                context={"reason_code": code.value},
            )

    def _publish(self, client: Any, message: MqttMessage) -> None:
        info = client.publish(message.topic, message.payload, qos=message.qos, retain=message.retain)
        try:
            info.wait_for_publish(timeout=self._timeout)
        except (RuntimeError, ValueError) as exc:
            raise TransportError(
                f"Publish to '{message.topic}' failed: {exc}",
                channel=self.CHANNEL_ID,
                host=self._host,
                port=self._port,
            ) from exc
        if not info.is_published():
            raise TransportError(
                f"Publish to '{message.topic}' was not acknowledged",
                channel=self.CHANNEL_ID,
                host=self._host,
                port=self._port,
                context={"rc": info.rc},
            )

    def _disconnect(self, client: Any, session: "_SessionEvents") -> None:
        rc = client.disconnect()
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportError(
                f"Disconnect failed: {mqtt.error_string(rc)}",
                channel=self.CHANNEL_ID,
                host=self._host,
                port=self._port,
            )
        # The DISCONNECT packet is written by the network thread.
        session.disconnected.wait(self._timeout)

    def _release(self, client: Any, loop_started: bool) -> None:
        if loop_started:
            client.loop_stop()
        if client.is_connected():
            client.disconnect()


class _SessionEvents:
    """Connection lifecycle signals delivered on the paho network thread."""

    def __init__(self, client: Any) -> None:
        self.connected = threading.Event()
        self.disconnected = threading.Event()
        self.connack_code: Any = None
        self.loop_started = False
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect

    def _on_connect(
        self, _client: Any, _userdata: Any, _flags: Any, reason_code: Any, _properties: Any = None
    ) -> None:
        self.connack_code = reason_code
        self.connected.set()

    def _on_disconnect(
        self, _client: Any, _userdata: Any, _flags: Any, _reason_code: Any, _properties: Any = None
    ) -> None:
        self.disconnected.set()

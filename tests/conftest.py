"""Shared pytest fixtures for the groundstation test suite."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from cryptography.fernet import Fernet

from groundstation.config import Settings, override_settings
from groundstation.secrets import SecretCipher
from groundstation.sequencer.models import InstructionOutcome, InstructionStatus
from groundstation.settings_store import ConfigurationStore


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def secrets_key() -> str:
    return Fernet.generate_key().decode("ascii")


@pytest.fixture
def cipher(secrets_key: str) -> SecretCipher:
    return SecretCipher(secrets_key)


@pytest.fixture
def test_settings(secrets_key: str, cipher: SecretCipher) -> Settings:
    settings = Settings(
        smtp={
            "host_name": "smtp.example.org",
            "host_port": 587,
            "username": "observer",
            "password": cipher.encrypt("smtp-secret"),
            "from_address": "scope@example.org",
            "default_recipients": "ops@example.org",
        },
        mqtt={
            "broker_host": "broker.example.org",
            "broker_port": 1883,
            "username": cipher.encrypt("mqtt-user"),
            "password": cipher.encrypt("mqtt-secret"),
            "client_id": "groundstation-test",
            "default_topic": "observatory/failures",
        },
        pwi3={"ip_address": "10.0.0.5", "port": 8220, "client_id": "gs"},
        secrets={"key": secrets_key},
        logging={"level": "debug", "format": "console"},
    )
    override_settings(settings)
    return settings


@pytest.fixture
def store(test_settings: Settings) -> ConfigurationStore:
    return ConfigurationStore.from_settings(test_settings)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@pytest.fixture
def failed_outcome() -> InstructionOutcome:
    return InstructionOutcome(
        name="Slew",
        description="Slew the mount to the target",
        attempts=3,
        status=InstructionStatus.FAILED,
        issues=("timeout",),
    )


@pytest.fixture
def next_outcome() -> InstructionOutcome:
    return InstructionOutcome(name="Center", status=InstructionStatus.PENDING)


# ---------------------------------------------------------------------------
# Fake SMTP
# ---------------------------------------------------------------------------


class FakeSmtp:
    """Stands in for ``smtplib.SMTP``; records every call made on it."""

    def __init__(self, host: str, port: int, timeout: float = 30.0, **kwargs: Any) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.kwargs = kwargs
        self.extensions = {"starttls"}
        self.calls: list[str] = []
        self.logins: list[tuple[str, str]] = []
        self.sent: list[Any] = []
        self.fail_on: dict[str, BaseException] = {}
        self.closed = False

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def ehlo(self) -> None:
        self._record("ehlo")

    def has_extn(self, name: str) -> bool:
        return name in self.extensions

    def starttls(self, context: Any = None) -> None:
        self._record("starttls")

    def login(self, username: str, password: str) -> None:
        self._record("login")
        self.logins.append((username, password))

    def send_message(self, message: Any) -> None:
        self._record("send_message")
        self.sent.append(message)

    def quit(self) -> None:
        self._record("quit")
        self.closed = True

    def close(self) -> None:
        self.calls.append("close")
        self.closed = True


class SmtpFactory:
    """Callable factory that hands out :class:`FakeSmtp` sessions."""

    def __init__(self) -> None:
        self.sessions: list[FakeSmtp] = []
        self.fail_on: dict[str, BaseException] = {}
        self.connect_error: BaseException | None = None

    def __call__(self, host: str, port: int, timeout: float = 30.0, **kwargs: Any) -> FakeSmtp:
        if self.connect_error is not None:
            raise self.connect_error
        session = FakeSmtp(host, port, timeout=timeout, **kwargs)
        session.fail_on = dict(self.fail_on)
        self.sessions.append(session)
        return session

    @property
    def last(self) -> FakeSmtp:
        return self.sessions[-1]


@pytest.fixture
def smtp_factory() -> SmtpFactory:
    return SmtpFactory()


# ---------------------------------------------------------------------------
# Fake MQTT
# ---------------------------------------------------------------------------


class FakeMessageInfo:
    def __init__(self, published: bool = True, error: BaseException | None = None) -> None:
        self.rc = 0
        self._published = published
        self._error = error

    def wait_for_publish(self, timeout: float | None = None) -> None:
        if self._error is not None:
            raise self._error

    def is_published(self) -> bool:
        return self._published


class FakeMqttClient:
    """Stands in for ``paho.mqtt.client.Client`` (callback API v2)."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        self.on_connect: Any = None
        self.on_disconnect: Any = None
        self.connected = False
        self.loop_running = False
        self.credentials: tuple[str, str | None] | None = None
        self.tls = False
        self.connect_args: tuple[str, int] | None = None
        self.published: list[dict[str, Any]] = []
        self.calls: list[str] = []
        self.connack = SimpleNamespace(is_failure=False, value=0)
        self.connect_error: BaseException | None = None
        self.publish_info = FakeMessageInfo()
        self.tls_error: BaseException | None = None

    def username_pw_set(self, username: str, password: str | None = None) -> None:
        self.credentials = (username, password)

    def tls_set(self) -> None:
        if self.tls_error is not None:
            raise self.tls_error
        self.tls = True

    def connect(self, host: str, port: int) -> int:
        self.calls.append("connect")
        if self.connect_error is not None:
            raise self.connect_error
        self.connect_args = (host, port)
        return 0

    def loop_start(self) -> None:
        self.calls.append("loop_start")
        self.loop_running = True
        self.connected = not self.connack.is_failure
        self.on_connect(self, None, {}, self.connack, None)

    def loop_stop(self) -> None:
        self.calls.append("loop_stop")
        self.loop_running = False

    def publish(self, topic: str, payload: str, qos: int = 0, retain: bool = False) -> FakeMessageInfo:
        self.calls.append("publish")
        self.published.append({"topic": topic, "payload": payload, "qos": qos, "retain": retain})
        return self.publish_info

    def disconnect(self) -> int:
        self.calls.append("disconnect")
        self.connected = False
        if self.on_disconnect is not None:
            self.on_disconnect(self, None, {}, SimpleNamespace(is_failure=False, value=0), None)
        return 0

    def is_connected(self) -> bool:
        return self.connected


class MqttClientFactory:
    def __init__(self) -> None:
        self.clients: list[FakeMqttClient] = []
        self.configure: Any = None

    def __call__(self, client_id: str) -> FakeMqttClient:
        client = FakeMqttClient(client_id)
        if self.configure is not None:
            self.configure(client)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeMqttClient:
        return self.clients[-1]


@pytest.fixture
def mqtt_factory() -> MqttClientFactory:
    return MqttClientFactory()

"""Failures to MQTT — publishes a JSON object when a sequence instruction fails.

Payload shape::

    {
        "name": "Slew",
        "description": "Slew the mount to the target",
        "attempts": 3,
        "error_list": [{"reason": "timeout"}]
    }
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from groundstation.channels.mqtt import MqttChannel, MqttMessage, MqttSettings
from groundstation.logging import bind_item_context, clear_item_context, get_logger
from groundstation.sequencer.models import InstructionOutcome, ItemMetadata
from groundstation.settings_store import ConfigurationStore
from groundstation.triggers.base import FailureTrigger

log = get_logger(__name__)


def failure_payload(outcome: InstructionOutcome) -> str:
    """Serialise *outcome* as the compact JSON failure report."""
    report = {
        "name": outcome.name,
        "description": outcome.description,
        "attempts": outcome.attempts,
        "error_list": [{"reason": reason} for reason in outcome.issues],
    }
    return json.dumps(report, separators=(",", ":"), ensure_ascii=False)


def mqtt_settings_issues(settings: MqttSettings, topic: str) -> list[str]:
    issues: list[str] = []
    if not settings.broker_host.strip():
        issues.append("MQTT broker hostname or IP not configured")
    if not settings.client_id.strip():
        issues.append("MQTT client ID is invalid")
    if not topic.strip():
        issues.append("MQTT topic is missing")
    return issues


class FailuresToMqttTrigger(FailureTrigger):
    KIND = "failures_to_mqtt"
    METADATA = ItemMetadata(
        name="Failures to MQTT",
        description="Sends a JSON object to an MQTT broker and topic when a sequence instruction fails",
        icon="Mqtt_SVG",
    )
    SELF_IDENTIFIER = "mqtt"

    def __init__(self, store: ConfigurationStore, **channel_options: Any) -> None:
        super().__init__(store)
        self._mqtt = self._watch("mqtt", MqttSettings)
        self._channel_options = channel_options
        self.topic: str = self._mqtt.current.default_topic

    @property
    def settings(self) -> MqttSettings:
        return self._mqtt.current

    async def execute(self, cancel: asyncio.Event | None = None) -> None:
        previous = self._armed_previous()
        settings = self._mqtt.current
        payload = failure_payload(previous)
        log.debug("mqtt_trigger_payload", payload=payload)

        bind_item_context(item_name=self.name, item_kind=self.KIND)
        try:
            channel = MqttChannel.from_settings(settings, self._store.reveal, **self._channel_options)
            await channel.send(MqttMessage(topic=self.topic, payload=payload), cancel)
        finally:
            clear_item_context()

    def _collect_issues(self) -> list[str]:
        return mqtt_settings_issues(self._mqtt.current, self.topic)

    def clone(self) -> "FailuresToMqttTrigger":
        copy = FailuresToMqttTrigger(self._store, **self._channel_options)
        self._copy_metadata(copy)
        copy.topic = self.topic
        return copy

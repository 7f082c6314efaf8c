"""Send to MQTT — publishes a free-form message to the configured broker."""

from __future__ import annotations

import asyncio
from typing import Any

from groundstation.channels.mqtt import MqttChannel, MqttMessage, MqttSettings
from groundstation.logging import bind_item_context, clear_item_context, get_logger
from groundstation.sequencer.base import SequenceItem
from groundstation.sequencer.models import ItemMetadata
from groundstation.settings_store import ConfigurationStore
from groundstation.triggers.failures_to_mqtt import mqtt_settings_issues

log = get_logger(__name__)


class SendToMqtt(SequenceItem):
    KIND = "send_to_mqtt"
    METADATA = ItemMetadata(
        name="Send to MQTT",
        description="Sends a free form message to a MQTT broker",
        icon="Mqtt_SVG",
    )

    def __init__(self, store: ConfigurationStore, **channel_options: Any) -> None:
        super().__init__(store)
        self._mqtt = self._watch("mqtt", MqttSettings)
        self._channel_options = channel_options
        self.topic: str = self._mqtt.current.default_topic
        self.payload: str = ""

    @property
    def settings(self) -> MqttSettings:
        return self._mqtt.current

    async def execute(self, cancel: asyncio.Event | None = None) -> None:
        settings = self._mqtt.current
        bind_item_context(item_name=self.name, item_kind=self.KIND)
        try:
            log.debug("send_to_mqtt_pushing", topic=self.topic, size=len(self.payload))
            channel = MqttChannel.from_settings(settings, self._store.reveal, **self._channel_options)
            await channel.send(MqttMessage(topic=self.topic, payload=self.payload), cancel)
        finally:
            clear_item_context()

    def _collect_issues(self) -> list[str]:
        return mqtt_settings_issues(self._mqtt.current, self.topic)

    def clone(self) -> "SendToMqtt":
        copy = SendToMqtt(self._store, **self._channel_options)
        self._copy_metadata(copy)
        copy.topic = self.topic
        copy.payload = self.payload
        return copy

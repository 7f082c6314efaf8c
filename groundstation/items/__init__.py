"""Sequence instructions."""

from groundstation.items.send_to_mqtt import SendToMqtt
from groundstation.items.wait_for_cooled_mirror import PollPhase, WaitForCooledMirror
from groundstation.telemetry import AmbientTempSource

__all__ = ["AmbientTempSource", "PollPhase", "SendToMqtt", "WaitForCooledMirror"]

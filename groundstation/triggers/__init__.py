"""Failure notification triggers."""

from groundstation.triggers.base import FailureTrigger
from groundstation.triggers.failures_to_email import FailuresToEmailTrigger
from groundstation.triggers.failures_to_mqtt import FailuresToMqttTrigger

__all__ = ["FailureTrigger", "FailuresToEmailTrigger", "FailuresToMqttTrigger"]

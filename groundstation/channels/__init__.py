"""Notification channels — SMTP email and MQTT broker publish."""

from groundstation.channels.base import BaseChannel
from groundstation.channels.email import EmailChannel, SmtpSettings, build_message
from groundstation.channels.mqtt import MqttChannel, MqttMessage, MqttSettings

__all__ = [
    "BaseChannel",
    "EmailChannel",
    "MqttChannel",
    "MqttMessage",
    "MqttSettings",
    "SmtpSettings",
    "build_message",
]

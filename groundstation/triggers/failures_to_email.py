"""Failures to Email — sends an email when a sequence instruction fails."""

from __future__ import annotations

import asyncio
from datetime import datetime
from email.message import EmailMessage
from typing import Any

from groundstation.channels.email import EmailChannel, SmtpSettings, build_message
from groundstation.logging import bind_item_context, clear_item_context, get_logger
from groundstation.sequencer.models import InstructionOutcome, ItemMetadata
from groundstation.settings_store import ConfigurationStore
from groundstation.triggers.base import FailureTrigger

log = get_logger(__name__)


def compose_failure_email(
    settings: SmtpSettings,
    recipient: str,
    previous: InstructionOutcome,
    next: InstructionOutcome | None,
    now: datetime | None = None,
) -> EmailMessage:
    """Render the plain-text failure report for *previous*."""
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    subject = f"Failure running {previous.name}!"
    body = (
        f"Time: {timestamp}\n"
        f'Status: "{previous.name}" did not complete successfully after '
        f"{previous.attempts} attempts!"
    )
    if next is not None:
        body += f'\nFollowing instruction: "{next.name}"'
    return build_message(settings.from_address, recipient, subject, body)


class FailuresToEmailTrigger(FailureTrigger):
    KIND = "failures_to_email"
    METADATA = ItemMetadata(
        name="Failures to Email",
        description="Sends an event via email when a sequence instruction fails",
        icon="Email_SVG",
    )
    SELF_IDENTIFIER = "email"

    def __init__(self, store: ConfigurationStore, **channel_options: Any) -> None:
        super().__init__(store)
        self._smtp = self._watch("smtp", SmtpSettings)
        self._channel_options = channel_options
        self.recipient: str = self._smtp.current.default_recipients

    @property
    def settings(self) -> SmtpSettings:
        return self._smtp.current

    async def execute(self, cancel: asyncio.Event | None = None) -> None:
        previous = self._armed_previous()
        settings = self._smtp.current
        message = compose_failure_email(settings, self.recipient, previous, self._next)

        bind_item_context(item_name=self.name, item_kind=self.KIND)
        try:
            log.debug("email_trigger_sending", item=previous.name, to=self.recipient)
            channel = EmailChannel.from_settings(settings, self._store.reveal, **self._channel_options)
            await channel.send(message, cancel)
        finally:
            clear_item_context()

    def _collect_issues(self) -> list[str]:
        settings = self._smtp.current
        issues: list[str] = []
        if not self.recipient.strip():
            issues.append("Email recipient is missing")
        if not settings.from_address.strip():
            issues.append("Email from address is missing")
        if not settings.host_name.strip():
            issues.append("SMTP server is not configured")
        if settings.host_port < 1:
            issues.append("SMTP port is invalid")
        return issues

    def clone(self) -> "FailuresToEmailTrigger":
        copy = FailuresToEmailTrigger(self._store, **self._channel_options)
        self._copy_metadata(copy)
        copy.recipient = self.recipient
        return copy

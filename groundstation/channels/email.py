"""Email channel — SMTP via ``smtplib``.

Connection security is negotiated automatically: port 465 uses implicit
TLS, any other port upgrades with STARTTLS when the server advertises it.
Authentication is attempted only when both a username and a password are
configured.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Any, Callable

from groundstation.channels.base import BaseChannel
from groundstation.exceptions import (
    TransportAuthenticationError,
    TransportConnectionError,
    TransportError,
)
from groundstation.logging import get_logger

log = get_logger(__name__)

IMPLICIT_TLS_PORT = 465
MAILER_NAME = "GroundStation"


@dataclass(frozen=True)
class SmtpSettings:
    """Cached SMTP settings.  ``password`` is ciphertext."""

    host_name: str = ""
    host_port: int = 587
    username: str = ""
    password: str = ""
    from_address: str = ""
    default_recipients: str = ""


def build_message(
    sender: str, recipients: str, subject: str, body: str
) -> EmailMessage:
    """Build a plain-text message tagged with the sending application."""
    message = EmailMessage()
    message["From"] = sender
    message["To"] = recipients
    message["Subject"] = subject
    message["X-Mailer"] = MAILER_NAME
    message.set_content(body)
    return message


class EmailChannel(BaseChannel[EmailMessage]):
    """Sends one message per call over a fresh SMTP session."""

    CHANNEL_ID = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        timeout: float = 30.0,
        smtp_factory: Callable[..., smtplib.SMTP] | None = None,
        smtp_ssl_factory: Callable[..., smtplib.SMTP] | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._timeout = timeout
        self._smtp_factory = smtp_factory or smtplib.SMTP
        self._smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    @classmethod
    def from_settings(
        cls, settings: SmtpSettings, reveal: Callable[[str, str], str], **kwargs: Any
    ) -> "EmailChannel":
        """Build a channel from a cached snapshot, decrypting the password now."""
        return cls(
            settings.host_name,
            settings.host_port,
            username=settings.username,
            password=reveal("smtp_password", settings.password),
            **kwargs,
        )

    async def send(self, payload: EmailMessage, cancel: asyncio.Event | None = None) -> None:
        smtp: smtplib.SMTP | None = None
        try:
            smtp = await self._step(
                "connect", self._call, "connect", self._open, cancel=cancel, on_abandon=_discard
            )

            if self._username and self._password:
                await self._step(
                    "authenticate",
                    self._call,
                    "authenticate",
                    smtp.login,
                    self._username,
                    self._password,
                    cancel=cancel,
                )

            await self._step("send", self._call, "send", smtp.send_message, payload, cancel=cancel)
            await self._step("disconnect", self._call, "disconnect", smtp.quit, cancel=cancel)
            smtp = None
        except TransportConnectionError as exc:
            log.error(
                "smtp_connection_failed",
                host=self._host,
                port=self._port,
                code=exc.code,
                error=exc.reason,
            )
            raise
        except TransportAuthenticationError:
            log.error(
                "smtp_authentication_failed",
                username=self._username,
                host=self._host,
                port=self._port,
            )
            raise
        except TransportError as exc:
            log.error("smtp_send_failed", host=self._host, port=self._port, error=exc.message)
            raise
        finally:
            if smtp is not None:
                smtp.close()

        log.info("email_sent", host=self._host, port=self._port, to=payload["To"])

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _open(self) -> smtplib.SMTP:
        if self._port == IMPLICIT_TLS_PORT:
            return self._smtp_ssl_factory(
                self._host, self._port, timeout=self._timeout, context=ssl.create_default_context()
            )

        smtp = self._smtp_factory(self._host, self._port, timeout=self._timeout)
        try:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls(context=ssl.create_default_context())
                smtp.ehlo()
        except BaseException:
            smtp.close()
            raise
        return smtp

    def _call(self, step: str, func: Callable[..., Any], *args: Any) -> Any:
        """Invoke *func* and translate smtplib/socket failures."""
        try:
            return func(*args)
        except smtplib.SMTPAuthenticationError as exc:
            raise TransportAuthenticationError(
                self.CHANNEL_ID, self._host, self._port, self._username
            ) from exc
        except (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected) as exc:
            raise TransportConnectionError(
                self.CHANNEL_ID,
                self._host,
                self._port,
                reason=str(exc),
                code=getattr(exc, "smtp_code", None),
            ) from exc
        except smtplib.SMTPException as exc:
            raise TransportError(
                f"SMTP {step} failed: {exc}",
                channel=self.CHANNEL_ID,
                host=self._host,
                port=self._port,
                context={"step": step},
            ) from exc
        except OSError as exc:
            raise TransportConnectionError(
                self.CHANNEL_ID,
                self._host,
                self._port,
                reason=exc.strerror or str(exc),
                code=exc.errno,
            ) from exc


def _discard(smtp: smtplib.SMTP) -> None:
    """Close a session opened by a connect step that was cancelled meanwhile."""
    log.debug("smtp_abandoned_session_closed")
    smtp.close()

"""GroundStation — Exception hierarchy.

All exceptions raised by the package inherit from GroundStationError so that
the host sequencer can catch the full family with a single except clause.

Hierarchy:
    GroundStationError
    ├── TransportError
    │   ├── TransportConnectionError
    │   └── TransportAuthenticationError
    ├── CancellationError
    ├── ConfigurationError
    │   └── SecretDecryptionError
    ├── TriggerNotArmedError
    └── ItemNotFoundError

Validation problems are never raised.  They are reported through the
``issues`` list of the item being validated.
"""

from __future__ import annotations

from typing import Any


class GroundStationError(Exception):
    """Base exception for all GroundStation errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Transport layer
# ---------------------------------------------------------------------------


class TransportError(GroundStationError):
    """A send or publish failed and the failure is not otherwise classified."""

    def __init__(
        self,
        message: str,
        channel: str = "",
        host: str = "",
        port: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = {"channel": channel, "host": host, "port": port}
        ctx.update(context or {})
        super().__init__(message, context=ctx)
        self.channel = channel
        self.host = host
        self.port = port


class TransportConnectionError(TransportError):
    """The channel endpoint could not be reached at the socket level."""

    def __init__(
        self,
        channel: str,
        host: str,
        port: int | None,
        reason: str,
        code: int | None = None,
    ) -> None:
        super().__init__(
            f"Connection to {channel} endpoint {host}:{port} failed"
            + (f" [{code}]" if code is not None else "")
            + f": {reason}",
            channel=channel,
            host=host,
            port=port,
            context={"reason": reason, "code": code},
        )
        self.reason = reason
        self.code = code


class TransportAuthenticationError(TransportError):
    """The channel endpoint rejected the configured credentials."""

    def __init__(self, channel: str, host: str, port: int | None, username: str) -> None:
        super().__init__(
            f"User '{username}' failed to authenticate with {channel} endpoint {host}:{port}",
            channel=channel,
            host=host,
            port=port,
            context={"username": username},
        )
        self.username = username


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------


class CancellationError(GroundStationError):
    """The operation was aborted because the caller requested cancellation."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Operation '{operation}' was cancelled",
            context={"operation": operation},
        )
        self.operation = operation


class TriggerNotArmedError(GroundStationError):
    """``execute()`` was called before ``should_trigger()`` observed a failure."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            f"Trigger '{kind}' has no failed instruction to report",
            context={"kind": kind},
        )
        self.kind = kind


class ItemNotFoundError(GroundStationError):
    """No sequence item or trigger with the given kind is registered."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            f"Sequence entity kind '{kind}' is not registered",
            context={"kind": kind},
        )
        self.kind = kind


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(GroundStationError):
    """Settings are missing or inconsistent in a way that prevents start-up."""


class SecretDecryptionError(ConfigurationError):
    """A stored secret could not be decrypted with the configured key."""

    def __init__(self, setting: str) -> None:
        super().__init__(
            f"Stored value for '{setting}' could not be decrypted",
            context={"setting": setting},
        )
        self.setting = setting

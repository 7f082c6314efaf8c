"""Live configuration store shared by all trigger and item instances.

The store holds the current value of every live setting under a flat name
(``mqtt_broker_host``, ``smtp_host_port``, ...).  Instances read a snapshot
at construction and subscribe to the names they care about; ``update()``
notifies only the observers of the changed name.

Usage::

    store = ConfigurationStore.from_settings(Settings.load())
    sub = store.subscribe("mqtt_broker_port", on_change)
    store.update("mqtt_broker_port", 8883)   # on_change("mqtt_broker_port", 8883)
    sub.close()

Observers may be notified from whichever thread calls ``update()``; the
callback must therefore only swap references, never mutate shared state
in place.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Generic, TypeVar

from groundstation.config import Settings
from groundstation.logging import get_logger
from groundstation.secrets import SECRET_SETTINGS, SecretCipher

log = get_logger(__name__)

S = TypeVar("S")

ChangeCallback = Callable[[str, Any], None]
"""
Signature: def callback(name: str, value: Any) -> None
"""


@dataclass(eq=False)
class Subscription:
    """Handle returned by :meth:`ConfigurationStore.subscribe`."""

    store: "ConfigurationStore"
    names: frozenset[str]
    callback: ChangeCallback
    active: bool = field(default=True)

    def close(self) -> None:
        if self.active:
            self.store.unsubscribe(self)


class ConfigurationStore:
    """Thread-safe holder of live settings with per-name change notification."""

    def __init__(self, values: dict[str, Any], cipher: SecretCipher) -> None:
        self._values: dict[str, Any] = dict(values)
        self._cipher = cipher
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfigurationStore":
        values = settings.flatten()
        cipher = SecretCipher.from_key(settings.secrets.key, values)
        return cls(values, cipher)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def cipher(self) -> SecretCipher:
        return self._cipher

    def get(self, name: str) -> Any:
        """Return the stored value.  Secret settings are returned encrypted."""
        with self._lock:
            if name not in self._values:
                raise KeyError(f"Unknown setting: {name!r}")
            return self._values[name]

    def section(self, prefix: str) -> dict[str, Any]:
        """Return ``{field: value}`` for every ``<prefix>_<field>`` setting."""
        head = f"{prefix}_"
        with self._lock:
            return {
                name[len(head):]: value
                for name, value in self._values.items()
                if name.startswith(head)
            }

    def reveal(self, name: str, value: str) -> str:
        """Decrypt *value* if *name* is a secret setting."""
        if name in SECRET_SETTINGS:
            return self._cipher.decrypt(value, setting=name)
        return value

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update(self, name: str, value: Any) -> None:
        """Store *value* under *name* and notify the observers of *name*.

        Plaintext values for secret settings must be passed through
        :meth:`store_secret` instead.
        """
        with self._lock:
            if name not in self._values:
                raise KeyError(f"Unknown setting: {name!r}")
            self._values[name] = value
            targets = [s for s in self._subscriptions if name in s.names]

        log.debug("setting_changed", name=name, observers=len(targets))
        for sub in targets:
            try:
                sub.callback(name, value)
            except Exception as exc:
                log.error("setting_observer_failed", name=name, error=str(exc))

    def store_secret(self, name: str, plaintext: str) -> None:
        if name not in SECRET_SETTINGS:
            raise KeyError(f"Not a secret setting: {name!r}")
        self.update(name, self._cipher.encrypt(plaintext))

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, names: str | set[str] | frozenset[str], callback: ChangeCallback) -> Subscription:
        """Register *callback* for changes to one or more setting names."""
        wanted = frozenset({names} if isinstance(names, str) else names)
        sub = Subscription(store=self, names=wanted, callback=callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        subscription.active = False

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


# ---------------------------------------------------------------------------
# LiveSettings: per-instance cached snapshot of one section
# ---------------------------------------------------------------------------


class LiveSettings(Generic[S]):
    """A frozen dataclass snapshot of one store section, kept current.

    Each change notification replaces the snapshot with a copy in which only
    the named field differs.  Readers take ``current`` once and keep using
    that object, so a concurrent update never shows up half-way through an
    ``execute()``.
    """

    def __init__(self, store: ConfigurationStore, prefix: str, snapshot_cls: type[S]) -> None:
        self._prefix = prefix
        self._fields = {f.name for f in fields(snapshot_cls)}  # type: ignore[arg-type]
        section = store.section(prefix)
        self._snapshot: S = snapshot_cls(**{k: v for k, v in section.items() if k in self._fields})
        self._subscription = store.subscribe(
            {f"{prefix}_{name}" for name in self._fields}, self._on_change
        )

    @property
    def current(self) -> S:
        return self._snapshot

    @property
    def active(self) -> bool:
        return self._subscription.active

    def close(self) -> None:
        self._subscription.close()

    def _on_change(self, name: str, value: Any) -> None:
        field_name = name[len(self._prefix) + 1:]
        self._snapshot = replace(self._snapshot, **{field_name: value})  # type: ignore[type-var]

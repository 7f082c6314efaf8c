"""Sequencer entity registry.

The registry is the single point of truth for the trigger and instruction
kinds this package offers to a host.  Hosts enumerate kinds and create
instances by their stable ``KIND`` string instead of discovering classes by
reflection.

Usage::

    registry = default_registry()
    trigger = registry.create("failures_to_mqtt", store)
    for kind, meta in registry.describe().items():
        print(kind, meta.name)
"""

from __future__ import annotations

from typing import Any, Type

from groundstation.exceptions import ItemNotFoundError
from groundstation.logging import get_logger
from groundstation.sequencer.base import SequenceEntity
from groundstation.sequencer.models import ItemMetadata
from groundstation.settings_store import ConfigurationStore

log = get_logger(__name__)


class ItemRegistry:
    """Runtime registry of sequence trigger and instruction classes."""

    def __init__(self) -> None:
        self._classes: dict[str, Type[SequenceEntity]] = {}

    def register(self, entity_class: Type[SequenceEntity]) -> None:
        kind = entity_class.KIND
        if not kind:
            raise ValueError(f"Class {entity_class.__name__} has no KIND.")
        if kind in self._classes:
            log.warning("item_already_registered", kind=kind)
        self._classes[kind] = entity_class
        log.debug("item_registered", kind=kind, cls=entity_class.__name__)

    def unregister(self, kind: str) -> None:
        if kind not in self._classes:
            raise ItemNotFoundError(kind)
        del self._classes[kind]

    def get(self, kind: str) -> Type[SequenceEntity]:
        try:
            return self._classes[kind]
        except KeyError:
            raise ItemNotFoundError(kind) from None

    def create(self, kind: str, store: ConfigurationStore, **kwargs: Any) -> SequenceEntity:
        """Instantiate *kind* bound to *store*.

        Extra keyword arguments are passed to the constructor (telemetry
        collaborators for the wait instruction, client factories in tests).
        """
        return self.get(kind)(store, **kwargs)

    def kinds(self) -> list[str]:
        return sorted(self._classes)

    def describe(self) -> dict[str, ItemMetadata]:
        return {kind: self._classes[kind].METADATA for kind in self.kinds()}

    def __contains__(self, kind: object) -> bool:
        return kind in self._classes

    def __len__(self) -> int:
        return len(self._classes)


def default_registry() -> ItemRegistry:
    """Return a registry holding every built-in trigger and instruction."""
    from groundstation.items.send_to_mqtt import SendToMqtt
    from groundstation.items.wait_for_cooled_mirror import WaitForCooledMirror
    from groundstation.triggers.failures_to_email import FailuresToEmailTrigger
    from groundstation.triggers.failures_to_mqtt import FailuresToMqttTrigger

    registry = ItemRegistry()
    for cls in (FailuresToEmailTrigger, FailuresToMqttTrigger, SendToMqtt, WaitForCooledMirror):
        registry.register(cls)
    return registry

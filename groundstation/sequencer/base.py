"""Sequencer capability interfaces.

Every trigger and instruction exposed to the host implements a small
capability set:

  - ``validate()`` / ``issues`` — configuration completeness check
  - ``should_trigger()`` + ``execute()`` (triggers) or ``execute()`` (items)
  - ``clone()`` — independent copy with its own settings subscription
  - ``KIND`` / ``METADATA`` — stable identifier and descriptive metadata

Subclasses must:
  1. Set ``KIND`` (snake_case, e.g. ``"failures_to_mqtt"``)
  2. Set ``METADATA``
  3. Implement :meth:`_collect_issues` and :meth:`clone`
  4. Release live subscriptions in :meth:`dispose` if they hold extra ones
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import ClassVar

from groundstation.sequencer.models import InstructionOutcome, ItemMetadata
from groundstation.settings_store import ConfigurationStore, LiveSettings


class SequenceEntity(ABC):
    """Common base for triggers and instructions."""

    KIND: ClassVar[str] = ""
    METADATA: ClassVar[ItemMetadata]

    def __init__(self, store: ConfigurationStore) -> None:
        self._store = store
        self._live: list[LiveSettings] = []
        self.name = self.METADATA.name
        self.description = self.METADATA.description
        self.icon = self.METADATA.icon
        self.category = self.METADATA.category
        self.issues: list[str] = []

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> bool:
        """Recompute ``issues`` from scratch and return True when there are none."""
        issues = self._collect_issues()
        self.issues = issues
        return not issues

    @abstractmethod
    def _collect_issues(self) -> list[str]:
        """Return the ordered list of human-readable problems."""

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    @abstractmethod
    def clone(self) -> "SequenceEntity":
        """Return an independent copy bound to the same store."""

    def dispose(self) -> None:
        """Release every settings subscription held by this instance."""
        for live in self._live:
            live.close()

    def _watch(self, prefix: str, snapshot_cls: type) -> LiveSettings:
        live = LiveSettings(self._store, prefix, snapshot_cls)
        self._live.append(live)
        return live

    def _copy_metadata(self, other: "SequenceEntity") -> None:
        other.name = self.name
        other.description = self.description
        other.icon = self.icon
        other.category = self.category

    def __str__(self) -> str:
        return f"Category: {self.category}, Item: {type(self).__name__}"


class SequenceTrigger(SequenceEntity):
    """Re-evaluated by the host after every instruction completes."""

    @abstractmethod
    def should_trigger(
        self, previous: InstructionOutcome | None, next: InstructionOutcome | None
    ) -> bool:
        """Return True when :meth:`execute` should run for this pair."""

    @abstractmethod
    async def execute(self, cancel: asyncio.Event | None = None) -> None:
        """Perform the trigger's side effect."""


class SequenceItem(SequenceEntity):
    """A single instruction run by the host."""

    @abstractmethod
    async def execute(self, cancel: asyncio.Event | None = None) -> None:
        """Run the instruction to completion."""

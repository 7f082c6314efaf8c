"""Sequencer data models.

The host sequencer describes each instruction it has run (or is about to
run) with an :class:`InstructionOutcome` snapshot.  Triggers never see the
host's live instruction objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InstructionStatus(str, Enum):
    """Lifecycle status of a sequence instruction as reported by the host."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class InstructionOutcome:
    """Immutable snapshot of one instruction, taken by the host."""

    name: str
    description: str = ""
    attempts: int = 0
    status: InstructionStatus = InstructionStatus.PENDING
    issues: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.attempts < 0:
            raise ValueError(f"attempts must be >= 0, got {self.attempts}")
        # Accept any sequence from the host but keep the snapshot immutable.
        if not isinstance(self.issues, tuple):
            object.__setattr__(self, "issues", tuple(self.issues))

    @property
    def failed(self) -> bool:
        return self.status is InstructionStatus.FAILED


@dataclass(frozen=True)
class ItemMetadata:
    """Descriptive metadata shown by the host for a trigger or instruction."""

    name: str
    description: str
    icon: str = ""
    category: str = "Ground Station"

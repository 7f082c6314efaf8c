"""Sequencer integration layer — data models, capability interfaces, registry."""

from groundstation.sequencer.base import SequenceEntity, SequenceItem, SequenceTrigger
from groundstation.sequencer.models import InstructionOutcome, InstructionStatus, ItemMetadata
from groundstation.sequencer.registry import ItemRegistry, default_registry

__all__ = [
    "InstructionOutcome",
    "InstructionStatus",
    "ItemMetadata",
    "ItemRegistry",
    "SequenceEntity",
    "SequenceItem",
    "SequenceTrigger",
    "default_registry",
]

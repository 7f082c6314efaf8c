"""FailureTrigger — shared evaluation logic for failure notification triggers.

A failure trigger fires when the instruction that just ran failed, unless
the failed instruction is itself a send over this trigger's channel.  That
self-exclusion keeps a broken notification channel from notifying about its
own failures forever.
"""

from __future__ import annotations

from typing import ClassVar

from groundstation.exceptions import TriggerNotArmedError
from groundstation.logging import get_logger
from groundstation.sequencer.base import SequenceTrigger
from groundstation.sequencer.models import InstructionOutcome

log = get_logger(__name__)


class FailureTrigger(SequenceTrigger):
    """Base class for triggers that report failed instructions."""

    SELF_IDENTIFIER: ClassVar[str] = ""

    _previous: InstructionOutcome | None = None
    _next: InstructionOutcome | None = None
    _armed: bool = False

    @property
    def previous(self) -> InstructionOutcome | None:
        return self._previous

    @property
    def next(self) -> InstructionOutcome | None:
        return self._next

    def should_trigger(
        self, previous: InstructionOutcome | None, next: InstructionOutcome | None
    ) -> bool:
        self._armed = False
        if previous is None:
            log.debug("trigger_no_previous_item", kind=self.KIND)
            return False

        self._previous = previous
        self._next = next

        if previous.failed and not self.is_self_notification(previous):
            log.debug("trigger_previous_item_failed", kind=self.KIND, item=previous.name)
            if previous.issues:
                log.debug(
                    "trigger_previous_item_issues",
                    kind=self.KIND,
                    item=previous.name,
                    issues=list(previous.issues),
                )
            self._armed = True
            return True

        log.debug(
            "trigger_previous_item_not_reportable",
            kind=self.KIND,
            item=previous.name,
            status=previous.status.value,
        )
        return False

    def is_self_notification(self, outcome: InstructionOutcome) -> bool:
        return self.SELF_IDENTIFIER.lower() in outcome.name.lower()

    def _armed_previous(self) -> InstructionOutcome:
        if not self._armed or self._previous is None:
            raise TriggerNotArmedError(self.KIND)
        return self._previous

"""
Reminder Logic for Shift Reminder Engine

Eligibility rules for shift reminders and the tracker that keeps reminders
at-most-once per shift.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Set

from .data_manager import LeadTimePreference, ShiftRecord
from .date_utils import describe_time_until, hours_between

logger = logging.getLogger(__name__)


def is_eligible(now: datetime, shift: ShiftRecord, lead_time: LeadTimePreference) -> bool:
    """
    Decide whether a shift's reminder should fire at `now`.

    A shift is eligible while its start lies in the window (now, now + lead].
    Shifts at or before now never qualify, and shifts further out become
    eligible on a later check.
    """
    lead_time = LeadTimePreference.parse(lead_time)
    hours_until = hours_between(now, shift.start_datetime())
    eligible = 0 < hours_until <= lead_time.hours
    logger.debug(
        f"Shift {shift.id}: {hours_until:.2f}h until start, "
        f"lead time {lead_time.value} ({lead_time.hours}h), eligible={eligible}"
    )
    return eligible


def build_reminder_message(shift: ShiftRecord, now: datetime) -> str:
    relative = describe_time_until(now, shift.start_datetime())
    return f"Reminder: you have a shift as {shift.role} starting at {shift.start_time} ({relative})"


class ReminderTracker:
    """Ledger of shift ids whose reminder has already been dispatched"""

    def __init__(self):
        self._fired: Set[str] = set()

    def mark_fired(self, shift_id: str):
        self._fired.add(shift_id)

    def discard(self, shift_id: str):
        self._fired.discard(shift_id)

    def has_fired(self, shift_id: str) -> bool:
        return shift_id in self._fired

    def clear(self):
        logger.info(f"Resetting reminder tracker. Was tracking {len(self._fired)} reminders.")
        self._fired.clear()

    def reconcile(self, current_shift_ids: Iterable[str], is_past: Callable[[str], bool]) -> int:
        """
        Drop entries for shifts that were deleted or whose date is before today.

        Returns the number of entries removed.
        """
        current = set(current_shift_ids)
        stale = {
            shift_id for shift_id in self._fired
            if shift_id not in current or is_past(shift_id)
        }
        self._fired -= stale
        logger.info(f"Reconciled reminder tracker: removed {len(stale)}, {len(self._fired)} valid reminders remain")
        return len(stale)

    def __len__(self) -> int:
        return len(self._fired)

    def __contains__(self, shift_id) -> bool:
        return shift_id in self._fired

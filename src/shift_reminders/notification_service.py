"""
Notification Service for Shift Reminder Engine

Periodically checks the shift collection and dispatches one reminder per
shift once it enters the user's lead-time window. Re-checks are driven by
a fixed-period timer and by changes in the number of shifts.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .data_manager import (
    NotificationEvent, NotificationPreferences, Severity, ShiftRecord
)
from .date_utils import Clock, format_date, system_clock
from .reminder_logic import ReminderTracker, build_reminder_message, is_eligible

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 60.0
REMINDER_CATEGORY = "reminders"

Dispatch = Callable[[NotificationEvent], None]
PreferencesProvider = Callable[[], NotificationPreferences]


class IntervalTimer:
    """Runs a callback every `interval` seconds on a daemon thread until cancelled"""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name="shift-reminder-timer", daemon=True)
        self._thread.start()

    def cancel(self):
        self._stop_event.set()

    def _run(self):
        while not self._stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception:
                # Like a host interval timer: report the failed tick, keep ticking
                logger.exception("Scheduled reminder check failed")


TimerFactory = Callable[[float, Callable[[], None]], IntervalTimer]


@dataclass
class EvaluationSummary:
    """Counts from one pass over the shift collection"""
    checked: int = 0
    sent: int = 0
    skipped: int = 0


class ShiftReminderScheduler:
    """
    Watches a shift source and fires at-most-once reminders.

    The shift source must provide get_shifts() and subscribe(listener), where
    subscribe returns a callable that removes the listener. Dispatch errors
    are not caught: they surface to whoever triggered the pass.
    """

    def __init__(self, shift_source, preferences_provider: PreferencesProvider,
                 dispatch: Dispatch, clock: Optional[Clock] = None,
                 timer_factory: Optional[TimerFactory] = None,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 tracker: Optional[ReminderTracker] = None):
        self.shift_source = shift_source
        self.preferences_provider = preferences_provider
        self.dispatch = dispatch
        self.clock = clock or system_clock
        self.timer_factory = timer_factory or IntervalTimer
        self.poll_interval = poll_interval
        self.tracker = tracker if tracker is not None else ReminderTracker()

        self._timer = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._previous_count = 0
        # Timer ticks arrive on a worker thread; re-entrant because a dispatch
        # that adds shifts comes back in through the change listener
        self._lock = threading.RLock()

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    def start(self):
        """Reconcile, check once, then keep checking on a timer and on shift count changes"""
        self.stop()

        self.reconcile()

        logger.info("Performing initial check for upcoming shifts")
        self.evaluate_all()

        self._timer = self.timer_factory(self.poll_interval, self._on_timer)
        self._timer.start()

        with self._lock:
            self._previous_count = len(self.shift_source.get_shifts())
        self._unsubscribe = self.shift_source.subscribe(self._on_shifts_changed)

        logger.info(f"Shift reminder scheduler started (polling every {self.poll_interval:g}s)")

    def stop(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def reconcile(self) -> int:
        """Forget reminders for shifts that were deleted or are already in the past"""
        with self._lock:
            shifts = {shift.id: shift for shift in self.shift_source.get_shifts()}
            today = format_date(self.clock())

            def is_past(shift_id: str) -> bool:
                return shifts[shift_id].date < today

            return self.tracker.reconcile(shifts.keys(), is_past)

    def evaluate_one(self, shift: ShiftRecord) -> bool:
        """Check a single shift now; returns True when a reminder was dispatched"""
        with self._lock:
            preferences = self.preferences_provider()
            if not self._reminders_enabled(preferences):
                return False
            return self._evaluate(shift, preferences, self.clock())

    def evaluate_all(self) -> EvaluationSummary:
        """Check every shift in the source, skipping those already reminded"""
        with self._lock:
            summary = EvaluationSummary()
            preferences = self.preferences_provider()
            if not self._reminders_enabled(preferences):
                return summary

            shifts = self.shift_source.get_shifts()
            if not shifts:
                logger.debug("No shifts found to check")
                return summary

            now = self.clock()
            logger.debug(f"Checking {len(shifts)} shifts for reminders at {now:%Y-%m-%d %H:%M}")

            for shift in shifts:
                summary.checked += 1
                if self.tracker.has_fired(shift.id):
                    summary.skipped += 1
                    continue
                if self._evaluate(shift, preferences, now):
                    summary.sent += 1

            logger.info(
                f"Reminder check complete - {summary.skipped} already notified, "
                f"{summary.sent} new reminders sent, {summary.checked} shifts checked"
            )
            return summary

    def reset(self) -> EvaluationSummary:
        """Forget every dispatched reminder and check again"""
        with self._lock:
            self.tracker.clear()
            return self.evaluate_all()

    def send_test_reminder(self) -> NotificationEvent:
        """
        Dispatch a reminder for a synthetic shift 55 minutes from now.

        If current preferences would suppress it, a plain test notification is
        forced through instead so the delivery path can still be checked.
        """
        now = self.clock()
        shift_time = now + timedelta(minutes=55)
        start_time = f"{shift_time:%H:%M}"
        end_time = f"{(shift_time.hour + 5) % 24:02d}:{shift_time.minute:02d}"
        test_shift = ShiftRecord(
            id=f"test-{int(now.timestamp() * 1000)}",
            employee_name="Test Employee",
            role="Test Role",
            date=format_date(shift_time),
            start_time=start_time,
            end_time=end_time
        )

        preferences = self.preferences_provider()
        if self._reminders_enabled(preferences) and is_eligible(now, test_shift, preferences.lead_time):
            event = self._reminder_event(test_shift, now)
        else:
            logger.warning("Test reminder conditions not met, forcing test notification")
            minutes = int((test_shift.start_datetime() - now).total_seconds() // 60)
            event = NotificationEvent(
                message=f"TEST NOTIFICATION: Shift scheduled at {start_time} (in {minutes} minutes)",
                severity=Severity.INFO,
                category=REMINDER_CATEGORY
            )
        self.dispatch(event)
        return event

    def _on_timer(self):
        logger.debug("Running scheduled check for upcoming shifts")
        self.evaluate_all()

    def _on_shifts_changed(self):
        # Only the number of shifts is compared; in-place edits wait for the next tick
        with self._lock:
            current_count = len(self.shift_source.get_shifts())
            if current_count == self._previous_count:
                return
            logger.info(f"Shifts count changed from {self._previous_count} to {current_count}, checking for reminders")
            self._previous_count = current_count
            self.evaluate_all()

    def _reminders_enabled(self, preferences: NotificationPreferences) -> bool:
        if not preferences.enabled:
            logger.debug("Notifications are disabled in preferences")
            return False
        if not preferences.reminder_type_enabled:
            logger.debug("Reminder notifications are disabled in preferences")
            return False
        return True

    def _evaluate(self, shift: ShiftRecord, preferences: NotificationPreferences, now: datetime) -> bool:
        if self.tracker.has_fired(shift.id):
            logger.debug(f"Skipping shift {shift.id} - reminder already sent")
            return False

        if not is_eligible(now, shift, preferences.lead_time):
            return False

        event = self._reminder_event(shift, now)
        # Marked before dispatch so a pass re-entered from dispatch skips this shift
        self.tracker.mark_fired(shift.id)
        try:
            self.dispatch(event)
        except Exception:
            self.tracker.discard(shift.id)
            raise
        logger.info(f"Shift reminder sent for {shift.id}: {event.message}")
        return True

    def _reminder_event(self, shift: ShiftRecord, now: datetime) -> NotificationEvent:
        return NotificationEvent(
            message=build_reminder_message(shift, now),
            severity=Severity.INFO,
            category=REMINDER_CATEGORY
        )


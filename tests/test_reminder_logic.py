import pytest
from datetime import datetime
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_reminders.data_manager import DataValidationError, LeadTimePreference, ShiftRecord
from shift_reminders.reminder_logic import ReminderTracker, build_reminder_message, is_eligible

NOW = datetime(2024, 6, 5, 9, 0)


def make_shift(start_time, shift_date="2024-06-05", shift_id="s1", role="Nurse"):
    return ShiftRecord(
        id=shift_id,
        employee_name="Alice",
        role=role,
        date=shift_date,
        start_time=start_time,
        end_time="17:00"
    )


@pytest.mark.parametrize(
    "start_time, lead_time, expected",
    [
        ("09:55", LeadTimePreference.ONE_HOUR, True),
        ("11:30", LeadTimePreference.ONE_HOUR, False),
        ("09:45", LeadTimePreference.ONE_HOUR, True),   # 45 minutes ahead
        ("10:30", LeadTimePreference.ONE_HOUR, False),  # 90 minutes ahead
        ("08:55", LeadTimePreference.ONE_HOUR, False),  # started 5 minutes ago
        ("09:00", LeadTimePreference.ONE_HOUR, False),  # starting right now
        ("10:00", LeadTimePreference.ONE_HOUR, True),   # window end is inclusive
        ("11:30", LeadTimePreference.THREE_HOURS, True),
        ("21:00", LeadTimePreference.TWELVE_HOURS, True),
        ("21:01", LeadTimePreference.TWELVE_HOURS, False),
    ],
)
def test_eligibility_window(start_time, lead_time, expected):
    assert is_eligible(NOW, make_shift(start_time), lead_time) is expected


def test_eligibility_across_midnight():
    shift = make_shift("08:00", shift_date="2024-06-06")
    assert is_eligible(NOW, shift, LeadTimePreference.TWENTY_FOUR_HOURS)
    assert not is_eligible(NOW, shift, LeadTimePreference.TWELVE_HOURS)


def test_eligibility_accepts_lead_time_strings():
    assert is_eligible(NOW, make_shift("09:55"), "1hour")
    with pytest.raises(ValueError):
        is_eligible(NOW, make_shift("09:55"), "2hours")


def test_eligibility_accepts_12_hour_times():
    assert is_eligible(NOW, make_shift("9:55 AM"), LeadTimePreference.ONE_HOUR)


def test_malformed_start_time_is_rejected():
    with pytest.raises(DataValidationError):
        make_shift("quarter past")


@pytest.mark.parametrize(
    "lead_time, hours",
    [("1hour", 1), ("3hours", 3), ("12hours", 12), ("24hours", 24)],
)
def test_lead_time_hours(lead_time, hours):
    assert LeadTimePreference.parse(lead_time).hours == hours


@pytest.mark.parametrize(
    "start_time, relative",
    [
        ("09:55", "in 55 minutes"),
        ("10:00", "in 1 hour"),
        ("10:01", "in 1 hour and 1 minute"),
        ("11:05", "in 2 hours and 5 minutes"),
        ("11:00", "in 2 hours"),
    ],
)
def test_reminder_message(start_time, relative):
    message = build_reminder_message(make_shift(start_time), NOW)
    assert message == f"Reminder: you have a shift as Nurse starting at {start_time} ({relative})"


def test_tracker_marks_and_clears():
    tracker = ReminderTracker()
    assert not tracker.has_fired("s1")
    tracker.mark_fired("s1")
    tracker.mark_fired("s1")
    assert tracker.has_fired("s1")
    assert "s1" in tracker
    assert len(tracker) == 1
    tracker.clear()
    assert not tracker.has_fired("s1")
    assert len(tracker) == 0


def test_reconcile_removes_deleted_shift():
    """Removing one shift from the live collection frees exactly one entry."""
    tracker = ReminderTracker()
    for shift_id in ("a", "b", "c"):
        tracker.mark_fired(shift_id)

    removed = tracker.reconcile({"a", "b"}, lambda shift_id: False)

    assert removed == 1
    assert len(tracker) == 2
    assert not tracker.has_fired("c")
    assert tracker.has_fired("a") and tracker.has_fired("b")


def test_reconcile_removes_past_shifts():
    tracker = ReminderTracker()
    tracker.mark_fired("yesterday")
    tracker.mark_fired("today")
    dates = {"yesterday": "2024-06-04", "today": "2024-06-05"}

    tracker.reconcile(dates.keys(), lambda shift_id: dates[shift_id] < "2024-06-05")

    assert not tracker.has_fired("yesterday")
    assert tracker.has_fired("today")

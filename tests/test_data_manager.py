import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from shift_reminders.data_manager import (
    DataValidationError, LeadTimePreference, NotificationEvent, NotificationPreferences,
    ReminderSettings, Severity, ShiftNotFoundError, ShiftRecord, ShiftStore
)


def make_shift(shift_id="s1", shift_date="2024-06-05"):
    return ShiftRecord(
        id=shift_id,
        employee_name="Alice",
        role="Nurse",
        date=shift_date,
        start_time="09:00",
        end_time="17:00"
    )


@pytest.fixture
def store():
    return ShiftStore()


def test_shift_date_is_normalised():
    assert make_shift(shift_date=" 2024-6-5 ").date == "2024-06-05"


@pytest.mark.parametrize("bad_date", ["06/05/2024", "2024-06", "tomorrow"])
def test_shift_rejects_malformed_date(bad_date):
    with pytest.raises(DataValidationError):
        make_shift(shift_date=bad_date)


@pytest.mark.parametrize(
    "start_time, end_time",
    [("25:00", "17:00"), ("09:00", "5pm"), ("quarter past", "17:00"), ("13:00 PM", "17:00")],
)
def test_shift_rejects_malformed_times(start_time, end_time):
    with pytest.raises(DataValidationError):
        ShiftRecord("s1", "Alice", "Nurse", "2024-06-05", start_time, end_time)


def test_shift_accepts_12_hour_times():
    shift = ShiftRecord("s1", "Alice", "Nurse", "2024-06-05", "9:00 AM", "5:00 PM")
    assert shift.time_range == "9:00 AM - 5:00 PM"


def test_shift_rejects_unknown_status():
    with pytest.raises(DataValidationError):
        ShiftRecord("s1", "Alice", "Nurse", "2024-06-05", "09:00", "17:00", status="Maybe")


def test_shift_time_range_and_dict_keys():
    shift = make_shift()
    assert shift.time_range == "9:00 AM - 5:00 PM"
    data = shift.to_dict()
    assert data["employeeName"] == "Alice"
    assert data["startTime"] == "09:00"
    assert ShiftRecord.from_dict(data) == shift


def test_from_dict_missing_field():
    with pytest.raises(DataValidationError):
        ShiftRecord.from_dict({"id": "s1", "role": "Nurse"})


def test_add_shift_notifies_listeners(store):
    calls = []
    store.subscribe(lambda: calls.append(len(store.get_shifts())))
    store.add_shift(make_shift("s1"))
    store.add_shift(make_shift("s2"))
    assert calls == [1, 2]


def test_duplicate_shift_id_is_ignored(store):
    calls = []
    store.subscribe(lambda: calls.append(True))
    assert store.add_shift(make_shift("s1"))
    assert not store.add_shift(make_shift("s1"))
    assert len(store.get_shifts()) == 1
    assert len(calls) == 1


def test_unsubscribe_stops_notifications(store):
    calls = []
    unsubscribe = store.subscribe(lambda: calls.append(True))
    unsubscribe()
    unsubscribe()
    store.add_shift(make_shift())
    assert calls == []
    assert store.listener_count == 0


def test_update_and_delete_missing_shift_raise(store):
    with pytest.raises(ShiftNotFoundError):
        store.update_shift(make_shift("missing"))
    with pytest.raises(ShiftNotFoundError):
        store.delete_shift("missing")


def test_delete_shift(store):
    store.add_shifts([make_shift("s1"), make_shift("s2")])
    store.delete_shift("s1")
    assert [s.id for s in store.get_shifts()] == ["s2"]
    assert store.get_shift("s1") is None


def test_notification_inbox_filters_disabled_categories(store):
    store.update_notification_preferences(NotificationPreferences(types={"general": False}))

    assert store.add_notification(NotificationEvent("hidden", Severity.SUCCESS, "general")) is None
    entry = store.add_notification(NotificationEvent("shown", Severity.INFO, "reminders"))

    assert entry["message"] == "shown"
    assert entry["type"] == "info"
    assert entry["read"] is False
    assert [n["message"] for n in store.get_notifications()] == ["shown"]

    store.clear_notifications()
    assert store.get_notifications() == []


def test_employees(store):
    store.add_employee("Alice", "Nurse")
    assert store.get_employee_by_name("Alice").role == "Nurse"
    assert store.get_employee_by_name("Bob") is None
    with pytest.raises(DataValidationError):
        store.add_employee("Alice", "Cook")


def test_preferences_from_dict():
    prefs = NotificationPreferences.from_dict({
        "enabled": True,
        "types": {"reminders": False},
        "timing": {"reminderLeadTime": "3hours"}
    })
    assert prefs.lead_time is LeadTimePreference.THREE_HOURS
    assert not prefs.reminder_type_enabled
    assert prefs.is_category_enabled("general")


def test_preferences_default_lead_time():
    assert NotificationPreferences.from_dict({}).lead_time is LeadTimePreference.TWELVE_HOURS


def test_preferences_reject_unknown_lead_time():
    with pytest.raises(DataValidationError):
        NotificationPreferences.from_dict({"timing": {"reminderLeadTime": "2hours"}})


def test_reminder_settings(store):
    assert store.get_reminder_settings().poll_interval_seconds == 60.0
    store.set_setting("pollIntervalSeconds", 15)
    store.set_setting("logLevel", "debug")
    settings = store.get_reminder_settings()
    assert settings.poll_interval_seconds == 15.0
    assert settings.log_level == "debug"


@pytest.mark.parametrize(
    "data",
    [
        {"pollIntervalSeconds": 0},
        {"defaultLeadTime": "48hours"},
        {"logLevel": "LOUD"},
        {"pollIntervalSeconds": "fast"},
        {"pollIntervalSeconds": None},
    ],
)
def test_reminder_settings_validation(data):
    with pytest.raises(DataValidationError):
        ReminderSettings.from_dict(data)


def test_load_data_replaces_contents(store):
    calls = []
    store.subscribe(lambda: calls.append(True))
    store.load_data({
        "settings": {"pollIntervalSeconds": 30},
        "employees": [{"name": "Alice", "role": "Nurse"}],
        "notificationPreferences": {"timing": {"reminderLeadTime": "1hour"}},
        "shifts": [make_shift("s1").to_dict(), make_shift("s1").to_dict()],
    })
    assert len(store.get_shifts()) == 1
    assert store.get_employee_by_name("Alice") is not None
    assert store.get_notification_preferences().lead_time is LeadTimePreference.ONE_HOUR
    assert store.get_setting("pollIntervalSeconds") == 30
    assert calls == [True]
    assert store.to_dict()["shifts"][0]["id"] == "s1"


def test_load_data_uses_default_lead_time_setting(store):
    store.load_data({"settings": {"defaultLeadTime": "24hours"}})
    assert store.get_notification_preferences().lead_time is LeadTimePreference.TWENTY_FOUR_HOURS


def test_load_data_with_bad_shift_keeps_previous_contents(store):
    store.add_shift(make_shift("s1"))
    store.update_notification_preferences(NotificationPreferences(lead_time=LeadTimePreference.ONE_HOUR))

    with pytest.raises(DataValidationError):
        store.load_data({
            "notificationPreferences": {"timing": {"reminderLeadTime": "3hours"}},
            "shifts": [dict(make_shift("s2").to_dict(), startTime="25:00")],
        })

    assert [s.id for s in store.get_shifts()] == ["s1"]
    assert store.get_notification_preferences().lead_time is LeadTimePreference.ONE_HOUR

"""
Data Manager for Shift Reminder Engine

Defines the shift, employee, preference and notification records the
engine works with, and an in-memory ShiftStore that plays the role of the
host's shift collection: CRUD, change subscription, notification
preferences, a notification inbox and application settings.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .date_utils import clean_date_string, combine_date_and_time, format_time_12h, parse_time

logger = logging.getLogger(__name__)


class ShiftDataError(Exception):
    """Base exception for shift data operations"""
    pass


class DataValidationError(ShiftDataError):
    """Raised when shift or settings data fails validation"""
    pass


class ShiftNotFoundError(ShiftDataError):
    """Raised when a shift id is not present in the store"""
    pass


SHIFT_STATUSES = ("Confirmed", "Pending", "Canceled")

NOTIFICATION_CATEGORIES = (
    "shifts", "scheduleChanges", "reminders", "timeOff", "publication", "shiftSwap", "general"
)


class LeadTimePreference(Enum):
    """How long before a shift starts its reminder may fire"""
    ONE_HOUR = "1hour"
    THREE_HOURS = "3hours"
    TWELVE_HOURS = "12hours"
    TWENTY_FOUR_HOURS = "24hours"

    @property
    def hours(self) -> int:
        return _LEAD_TIME_HOURS[self]

    @classmethod
    def parse(cls, value) -> 'LeadTimePreference':
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Unknown reminder lead time: {value!r}") from None


_LEAD_TIME_HOURS = {
    LeadTimePreference.ONE_HOUR: 1,
    LeadTimePreference.THREE_HOURS: 3,
    LeadTimePreference.TWELVE_HOURS: 12,
    LeadTimePreference.TWENTY_FOUR_HOURS: 24,
}


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class NotificationEvent:
    """Notification emitted by the engine for the host to present"""
    message: str
    severity: Severity = Severity.INFO
    category: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "type": self.severity.value,
            "category": self.category
        }


def generate_shift_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ShiftRecord:
    """A scheduled work assignment"""
    id: str
    employee_name: str
    role: str
    date: str  # YYYY-MM-DD, local civil date
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    status: str = "Confirmed"
    color: str = ""

    def __post_init__(self):
        try:
            self.date = clean_date_string(self.date)
            date.fromisoformat(self.date)
            parse_time(self.start_time)
            parse_time(self.end_time)
        except ValueError as e:
            raise DataValidationError(f"Shift {self.id}: {e}") from e
        if self.status not in SHIFT_STATUSES:
            raise DataValidationError(f"Shift {self.id}: unknown status {self.status!r}")

    @property
    def time_range(self) -> str:
        return f"{format_time_12h(self.start_time)} - {format_time_12h(self.end_time)}"

    def start_datetime(self) -> datetime:
        """The shift's temporal identity: date and start time as one local instant"""
        try:
            return combine_date_and_time(self.date, self.start_time)
        except ValueError as e:
            raise DataValidationError(f"Shift {self.id}: {e}") from e

    def calendar_date(self) -> date:
        return date.fromisoformat(self.date)

    def with_date(self, new_date: str, new_id: Optional[str] = None) -> 'ShiftRecord':
        """Copy of this shift moved to another date under a fresh id"""
        return replace(self, id=new_id or generate_shift_id(), date=new_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employeeName": self.employee_name,
            "role": self.role,
            "date": self.date,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "timeRange": self.time_range,
            "status": self.status,
            "color": self.color
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ShiftRecord':
        try:
            return cls(
                id=str(data.get("id") or generate_shift_id()),
                employee_name=data["employeeName"],
                role=data["role"],
                date=data["date"],
                start_time=data["startTime"],
                end_time=data["endTime"],
                status=data.get("status", "Confirmed"),
                color=data.get("color", "")
            )
        except KeyError as e:
            raise DataValidationError(f"Shift record missing field {e}") from e


@dataclass
class Employee:
    """Roster entry used to validate copied shifts"""
    id: str
    name: str
    role: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "role": self.role}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Employee':
        return cls(
            id=str(data.get("id") or generate_shift_id()),
            name=data["name"],
            role=data.get("role", "")
        )


@dataclass
class NotificationPreferences:
    """User notification preferences the reminder engine honours"""
    enabled: bool = True
    lead_time: LeadTimePreference = LeadTimePreference.TWELVE_HOURS
    types: Dict[str, bool] = field(default_factory=lambda: {c: True for c in NOTIFICATION_CATEGORIES})

    @property
    def reminder_type_enabled(self) -> bool:
        return self.types.get("reminders", True)

    def is_category_enabled(self, category: Optional[str]) -> bool:
        if not category:
            return True
        return self.types.get(category, True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "types": dict(self.types),
            "timing": {"reminderLeadTime": self.lead_time.value}
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NotificationPreferences':
        types = {c: True for c in NOTIFICATION_CATEGORIES}
        types.update(data.get("types", {}))
        timing = data.get("timing", {})
        try:
            lead_time = LeadTimePreference.parse(timing.get("reminderLeadTime", "12hours"))
        except ValueError as e:
            raise DataValidationError(str(e)) from e
        return cls(
            enabled=data.get("enabled", True),
            lead_time=lead_time,
            types=types
        )


@dataclass
class ReminderSettings:
    """Runtime configuration for the reminder service and its host"""
    poll_interval_seconds: float = 60.0
    default_lead_time: str = "12hours"
    log_dir: str = "logs"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.poll_interval_seconds <= 0:
            raise DataValidationError("pollIntervalSeconds must be positive")
        try:
            LeadTimePreference.parse(self.default_lead_time)
        except ValueError as e:
            raise DataValidationError(str(e)) from e
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise DataValidationError(f"Unknown log level: {self.log_level!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReminderSettings':
        try:
            poll_interval = float(data.get("pollIntervalSeconds", 60.0))
        except (TypeError, ValueError) as e:
            raise DataValidationError(
                f"pollIntervalSeconds must be a number, got {data.get('pollIntervalSeconds')!r}"
            ) from e
        return cls(
            poll_interval_seconds=poll_interval,
            default_lead_time=data.get("defaultLeadTime", "12hours"),
            log_dir=data.get("logDir", "logs"),
            log_level=data.get("logLevel", "INFO")
        )


ShiftListener = Callable[[], None]


class ShiftStore:
    """
    In-memory shift collection with change notification.

    Listeners registered through subscribe() are called synchronously after
    every mutation, mirroring a state container's subscribe().
    """

    def __init__(self, shifts: Optional[List[ShiftRecord]] = None,
                 preferences: Optional[NotificationPreferences] = None):
        self._shifts: List[ShiftRecord] = []
        self._listeners: List[ShiftListener] = []
        self._employees: List[Employee] = []
        self._notifications: List[Dict[str, Any]] = []
        self._settings: Dict[str, Any] = {}
        self._preferences = preferences or NotificationPreferences()
        for shift in shifts or []:
            self._insert(shift)

    # Change feed
    def subscribe(self, listener: ShiftListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self):
        for listener in list(self._listeners):
            listener()

    # Shift Management
    def get_shifts(self) -> List[ShiftRecord]:
        return list(self._shifts)

    def get_shift(self, shift_id: str) -> Optional[ShiftRecord]:
        for shift in self._shifts:
            if shift.id == shift_id:
                return shift
        return None

    def _insert(self, shift: ShiftRecord) -> bool:
        if self.get_shift(shift.id) is not None:
            logger.warning(f"Attempted to add a shift with an ID that already exists: {shift.id}")
            return False
        self._shifts.append(shift)
        return True

    def add_shift(self, shift: ShiftRecord) -> bool:
        """Add a shift; duplicates by id are ignored"""
        added = self._insert(shift)
        if added:
            self._notify()
        return added

    def add_shifts(self, shifts: List[ShiftRecord]) -> int:
        """Add shifts one by one so listeners see each insertion"""
        return sum(1 for shift in shifts if self.add_shift(shift))

    def update_shift(self, shift: ShiftRecord):
        for index, existing in enumerate(self._shifts):
            if existing.id == shift.id:
                self._shifts[index] = shift
                self._notify()
                return
        raise ShiftNotFoundError(f"Shift {shift.id} not found")

    def delete_shift(self, shift_id: str):
        shift = self.get_shift(shift_id)
        if shift is None:
            raise ShiftNotFoundError(f"Shift {shift_id} not found")
        self._shifts.remove(shift)
        self._notify()

    def clear_shifts(self):
        self._shifts = []
        self._notify()

    # Preferences Management
    def get_notification_preferences(self) -> NotificationPreferences:
        return self._preferences

    def update_notification_preferences(self, preferences: NotificationPreferences):
        self._preferences = preferences

    # Employee Management
    def get_employees(self) -> List[Employee]:
        return list(self._employees)

    def get_employee_by_name(self, name: str) -> Optional[Employee]:
        for employee in self._employees:
            if employee.name == name:
                return employee
        return None

    def add_employee(self, name: str, role: str) -> Employee:
        if self.get_employee_by_name(name) is not None:
            raise DataValidationError(f"Employee {name!r} already exists")
        employee = Employee(id=generate_shift_id(), name=name, role=role)
        self._employees.append(employee)
        return employee

    # Notification inbox
    def add_notification(self, event: NotificationEvent) -> Optional[Dict[str, Any]]:
        """Store a notification unless its category is switched off"""
        if not self._preferences.is_category_enabled(event.category):
            logger.debug(f"Dropping notification in disabled category {event.category}: {event.message}")
            return None
        entry = event.to_dict()
        entry["id"] = generate_shift_id()
        entry["read"] = False
        self._notifications.append(entry)
        return entry

    def get_notifications(self) -> List[Dict[str, Any]]:
        return list(self._notifications)

    def clear_notifications(self):
        self._notifications = []

    # Settings Management
    def get_setting(self, key: str, default=None):
        return self._settings.get(key, default)

    def set_setting(self, key: str, value):
        self._settings[key] = value

    def get_reminder_settings(self) -> ReminderSettings:
        return ReminderSettings.from_dict(self._settings)

    # Host interchange
    def load_data(self, data: Dict[str, Any]):
        """
        Replace the store contents from a host data dictionary.

        Every record is parsed before anything is replaced, so a bad record
        leaves the store as it was.
        """
        raw_settings = dict(data.get("settings", {}))
        settings = ReminderSettings.from_dict(raw_settings)
        employees = [Employee.from_dict(e) for e in data.get("employees", [])]

        # Preferences without an explicit lead time fall back to the configured default
        preferences_data = dict(data.get("notificationPreferences", {}))
        timing = dict(preferences_data.get("timing", {}))
        timing.setdefault("reminderLeadTime", settings.default_lead_time)
        preferences_data["timing"] = timing
        preferences = NotificationPreferences.from_dict(preferences_data)
        shifts = [ShiftRecord.from_dict(s) for s in data.get("shifts", [])]

        self._settings = raw_settings
        self._employees = employees
        self._preferences = preferences
        self._shifts = []
        for shift in shifts:
            self._insert(shift)
        logger.info(f"Loaded {len(self._shifts)} shifts and {len(self._employees)} employees")
        self._notify()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": dict(self._settings),
            "employees": [e.to_dict() for e in self._employees],
            "notificationPreferences": self._preferences.to_dict(),
            "shifts": [s.to_dict() for s in self._shifts]
        }

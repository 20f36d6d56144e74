"""
Recurrence Expansion for Shift Reminder Engine

Turns one anchor shift plus a daily or weekly recurrence rule into the
ordered list of future dates the shift should be duplicated onto, and
builds the copied shift records for a chosen set of dates.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional

from .data_manager import (
    DataValidationError, Employee, NotificationEvent, Severity, ShiftRecord
)
from .date_utils import DateLike, add_days, day_name, format_date, parse_date, weekday_index

logger = logging.getLogger(__name__)

MIN_OCCURRENCES = 1
MAX_OCCURRENCES = 12


class Frequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


@dataclass(frozen=True)
class RecurrenceRule:
    """Pattern for duplicating a shift across several dates"""
    frequency: Frequency
    occurrence_count: int
    weekdays: FrozenSet[int] = frozenset()  # Sunday=0 .. Saturday=6, weekly only

    def __post_init__(self):
        if isinstance(self.frequency, str):
            try:
                object.__setattr__(self, 'frequency', Frequency(self.frequency.lower()))
            except ValueError:
                pass  # reported by validate_rule
        # Accept any iterable of weekdays; duplicates collapse
        object.__setattr__(self, 'weekdays', frozenset(self.weekdays))

    def clamped(self) -> 'RecurrenceRule':
        """Copy with occurrence_count forced into the allowed range"""
        count = min(max(self.occurrence_count, MIN_OCCURRENCES), MAX_OCCURRENCES)
        return replace(self, occurrence_count=count)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class RecurrenceResult:
    """Outcome of a recurring-pattern request"""
    dates: List[date]
    validation: ValidationResult
    notification: NotificationEvent

    @property
    def date_strings(self) -> List[str]:
        return [d.isoformat() for d in self.dates]


@dataclass
class CopyResult:
    """Outcome of copying a shift onto a set of dates"""
    shifts: List[ShiftRecord]
    notification: NotificationEvent

    @property
    def success(self) -> bool:
        return self.notification.severity == Severity.SUCCESS


def validate_rule(rule: RecurrenceRule) -> ValidationResult:
    """Check a rule before expansion; never raises"""
    errors = []

    if not isinstance(rule.frequency, Frequency):
        errors.append(f"Unknown recurrence frequency: {rule.frequency!r}")

    count = rule.occurrence_count
    if isinstance(count, bool) or not isinstance(count, int):
        errors.append(f"Occurrence count must be a whole number, got {count!r}")
    elif not MIN_OCCURRENCES <= count <= MAX_OCCURRENCES:
        errors.append(f"Occurrence count must be between {MIN_OCCURRENCES} and {MAX_OCCURRENCES}, got {count}")

    invalid_days = sorted(str(d) for d in rule.weekdays if not (isinstance(d, int) and 0 <= d <= 6))
    if invalid_days:
        errors.append(f"Weekdays must be between 0 (Sunday) and 6 (Saturday), got {', '.join(invalid_days)}")

    return ValidationResult(is_valid=not errors, errors=errors)


def weekday_offset(start_weekday: int, target_weekday: int) -> int:
    """
    Forward day offset from start_weekday to the next target_weekday.

    Kept as an explicit branch: the modulo form (target - start + 7) % 7 was
    where Saturday targets used to roll into the wrong week.
    """
    if target_weekday >= start_weekday:
        return target_weekday - start_weekday
    return 7 - (start_weekday - target_weekday)


class RecurrenceExpander:
    """Expands recurrence rules into candidate dates"""

    def expand(self, anchor_date: DateLike, rule: RecurrenceRule,
               exclude_date: Optional[DateLike] = None) -> List[date]:
        """
        Generate the dates for `rule`, counting forward from the day after
        `anchor_date`. `exclude_date` never appears in the result, which is
        sorted ascending.
        """
        validation = validate_rule(rule)
        if not validation.is_valid:
            raise DataValidationError("; ".join(validation.errors))

        start = add_days(anchor_date, 1)
        excluded = parse_date(exclude_date) if exclude_date is not None else None
        logger.debug(f"Expanding {rule.frequency.value} pattern x{rule.occurrence_count} from {start}")

        if rule.frequency == Frequency.DAILY:
            candidates = self._daily_dates(start, rule.occurrence_count)
        else:
            candidates = self._weekly_dates(start, rule.occurrence_count, rule.weekdays)

        dates = set()
        for candidate in candidates:
            if candidate == excluded:
                logger.debug(f"Skipping {candidate} because it matches the excluded date")
                continue
            dates.add(candidate)

        return sorted(dates)

    def _daily_dates(self, start: date, count: int) -> List[date]:
        return [add_days(start, day) for day in range(count)]

    def _weekly_dates(self, start: date, count: int, weekdays: FrozenSet[int]) -> List[date]:
        start_weekday = weekday_index(start)
        targets = sorted(weekdays) if weekdays else [start_weekday]
        logger.debug(f"Weekly pattern for days: {', '.join(day_name(d) for d in targets)}")

        dates = []
        for week in range(count):
            for target in targets:
                offset = weekday_offset(start_weekday, target)
                dates.append(add_days(start, offset + week * 7))
        return dates

    def generate(self, anchor_date: DateLike, rule: RecurrenceRule,
                 exclude_date: Optional[DateLike] = None) -> RecurrenceResult:
        """Validate, expand and summarise a recurring pattern for the host"""
        validation = validate_rule(rule)
        if not validation.is_valid:
            logger.warning(f"Rejected recurrence rule: {validation.errors}")
            return RecurrenceResult(
                dates=[],
                validation=validation,
                notification=NotificationEvent(
                    message="; ".join(validation.errors),
                    severity=Severity.ERROR,
                    category="general"
                )
            )

        dates = self.expand(anchor_date, rule, exclude_date)
        logger.info(f"Generated {len(dates)} dates in total: {[d.isoformat() for d in dates]}")

        if dates:
            notification = NotificationEvent(
                message=f"Generated {len(dates)} dates for recurring pattern",
                severity=Severity.SUCCESS,
                category="general"
            )
        else:
            notification = NotificationEvent(
                message="No valid dates generated. Please check your pattern.",
                severity=Severity.WARNING,
                category="general"
            )
        return RecurrenceResult(dates=dates, validation=validation, notification=notification)


class ShiftCopier:
    """Creates copies of a shift on other dates after roster validation"""

    def copy_to_dates(self, original: Optional[ShiftRecord], dates: Iterable[DateLike],
                      employees: Iterable[Employee]) -> CopyResult:
        if original is None:
            return self._failure("Error: Could not find the original shift to copy", Severity.ERROR)

        date_strings = []
        for value in dates:
            formatted = format_date(value)
            if formatted not in date_strings:
                date_strings.append(formatted)

        if not date_strings:
            return self._failure("Please select at least one date to copy the shift to", Severity.WARNING)

        target_dates = [d for d in date_strings if d != original.date]
        if not target_dates:
            return self._failure(
                "Cannot copy shift to its original date. Please select a different date.",
                Severity.WARNING
            )

        employee = next((e for e in employees if e.name == original.employee_name), None)
        if employee is None:
            return self._failure(
                f'Employee "{original.employee_name}" does not exist. '
                f'Please add them in the Employees tab first.',
                Severity.ERROR
            )
        if employee.role != original.role:
            return self._failure(
                f"Role mismatch: {original.employee_name} is a {employee.role}, not a {original.role}.",
                Severity.WARNING
            )

        copies = [original.with_date(d) for d in target_dates]
        for copy in copies:
            logger.info(f"Creating copy of shift {original.id} for date {copy.date} (id {copy.id})")

        return CopyResult(
            shifts=copies,
            notification=NotificationEvent(
                message=f"Successfully copied shift to {len(copies)} day(s)",
                severity=Severity.SUCCESS,
                category="general"
            )
        )

    def _failure(self, message: str, severity: Severity) -> CopyResult:
        logger.warning(f"Shift copy rejected: {message}")
        return CopyResult(
            shifts=[],
            notification=NotificationEvent(message=message, severity=severity, category="general")
        )

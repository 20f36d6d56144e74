"""
Shift Reminder Engine

Reminder scheduling and recurrence expansion for shift schedules: fires
one reminder per shift inside a configurable lead-time window and expands
a shift across daily or weekly recurring dates.
"""

__version__ = "1.0.0"
__author__ = "Shift Scheduler Team"

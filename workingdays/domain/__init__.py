"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    CalendarInvariantError,
    HolidaySourceError,
    HolidayStoreError,
    WorkingDaysError,
)
from .models import BUSINESS_TIMEZONE, Holiday, HolidaySet, WorkingMoment

__all__ = [
    "BUSINESS_TIMEZONE",
    "CalendarInvariantError",
    "Holiday",
    "HolidaySet",
    "HolidaySourceError",
    "HolidayStoreError",
    "WorkingDaysError",
    "WorkingMoment",
]

"""
Domain-specific exception hierarchy for the working days calculator.
"""


class WorkingDaysError(Exception):
    """Base class for all application-level errors."""


class HolidaySourceError(WorkingDaysError):
    """Raised when holiday data cannot be fetched or parsed."""


class HolidayStoreError(HolidaySourceError):
    """Raised when the persisted holiday store cannot be read or written."""


class CalendarInvariantError(WorkingDaysError):
    """Raised when the calendar engine fails to reach a working day."""

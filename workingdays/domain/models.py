"""
Domain models for working-time calculations.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Dict, FrozenSet, Iterable, Union

import pendulum
from pendulum import DateTime

# Bogotá business time: a fixed UTC-05:00 offset, no daylight saving
BUSINESS_UTC_OFFSET = timedelta(hours=-5)
BUSINESS_TIMEZONE = pendulum.fixed_timezone(int(BUSINESS_UTC_OFFSET.total_seconds()))

PLACEHOLDER_HOLIDAY_NAME = "Holiday"


@dataclass(frozen=True)
class WorkingMoment:
    """
    An immutable instant held in the business timezone.

    ``keep_millis`` records whether the instant was ingested with explicit
    sub-second precision, so formatting knows whether to emit milliseconds.

    Invariant: ``value`` is always expressed in ``BUSINESS_TIMEZONE``.
    """
    value: DateTime
    keep_millis: bool = False

    def __post_init__(self):
        offset = self.value.utcoffset()
        if offset != BUSINESS_UTC_OFFSET:
            raise ValueError(f"WorkingMoment must be at UTC-05:00, got offset {offset}")

    def with_value(self, value: DateTime) -> "WorkingMoment":
        """Return a copy holding a different instant, keeping the precision flag."""
        return replace(self, value=value)

    def __str__(self) -> str:
        return self.value.to_iso8601_string()


@dataclass(frozen=True)
class Holiday:
    """
    A non-working calendar date.

    Two holidays are equal when they fall on the same date; the name is
    informational only.
    """
    date: date
    name: str = field(default=PLACEHOLDER_HOLIDAY_NAME, compare=False)

    def to_record(self) -> Dict[str, str]:
        """Serialize to the ``{"date", "name"}`` shape used by the holiday sources."""
        return {"date": self.date.isoformat(), "name": self.name}

    @classmethod
    def from_record(cls, record: Dict[str, str]) -> "Holiday":
        """Build a holiday from a ``{"date": "YYYY-MM-DD", "name": ...}`` mapping."""
        return cls(
            date=date.fromisoformat(record["date"]),
            name=record.get("name") or PLACEHOLDER_HOLIDAY_NAME,
        )


@dataclass(frozen=True)
class HolidaySet:
    """
    Lookup structure over calendar dates, normalized to ``YYYY-MM-DD``.

    Built once per calculation and used for membership tests only.
    """
    dates: FrozenSet[str] = frozenset()

    @classmethod
    def from_holidays(cls, holidays: Iterable[Holiday]) -> "HolidaySet":
        return cls(dates=frozenset(holiday.date.isoformat() for holiday in holidays))

    @classmethod
    def from_dates(cls, days: Iterable[Union[date, str]]) -> "HolidaySet":
        return cls(dates=frozenset(_normalize(day) for day in days))

    def __contains__(self, day: object) -> bool:
        if not isinstance(day, (date, str)):
            return False
        return _normalize(day) in self.dates

    def __len__(self) -> int:
        return len(self.dates)


def _normalize(day: Union[date, str]) -> str:
    if isinstance(day, datetime):
        if day.tzinfo is not None:
            day = pendulum.instance(day).in_timezone(BUSINESS_TIMEZONE)
        return day.date().isoformat()
    if isinstance(day, date):
        return day.isoformat()
    return day

"""
Core working-time arithmetic for the Bogotá business calendar.

This is the heart of the application - pure functions over ``WorkingMoment``
values without any I/O. Every operation returns a new moment.

Schedule (fixed):
    Monday-Friday, 08:00-12:00 and 13:00-17:00 at UTC-05:00 (Bogotá, no daylight saving).
    17:00:00 itself is a valid landing point but holds no working time.

Calculations run in a fixed order, bundled by ``advance``:
    1. snap the start back to the last valid working instant
    2. add whole working days (time of day carried over)
    3. add working hours (skipping lunch, nights, weekends and holidays)
"""

from __future__ import annotations

import re
from datetime import time, timedelta
from typing import Optional

import pendulum
from pendulum import DateTime

from .exceptions import CalendarInvariantError
from .models import BUSINESS_TIMEZONE, HolidaySet, WorkingMoment

WORK_START = time(8, 0)
LUNCH_START = time(12, 0)
LUNCH_END = time(13, 0)
WORK_END = time(17, 0)

WORKING_HOURS_PER_DAY = 8

_FRACTIONAL_SECONDS = re.compile(r"T\d{2}:?\d{2}:?\d{2}[.,]\d+")


def from_utc(iso_instant: Optional[str] = None) -> WorkingMoment:
    """
    Ingest a UTC ISO-8601 instant (or the current time) into the business timezone.

    Milliseconds survive only when the input text carries fractional seconds;
    otherwise the instant is truncated to whole seconds.
    """
    if iso_instant is None:
        instant = pendulum.now("UTC")
        keep_millis = False
    else:
        parsed = pendulum.parse(iso_instant)
        if not isinstance(parsed, DateTime):
            raise ValueError(f"Not an ISO-8601 instant: {iso_instant!r}")
        instant = parsed
        keep_millis = bool(_FRACTIONAL_SECONDS.search(iso_instant))

    if keep_millis:
        instant = instant.set(microsecond=instant.microsecond // 1000 * 1000)
    else:
        instant = instant.set(microsecond=0)

    return WorkingMoment(value=instant.in_timezone(BUSINESS_TIMEZONE), keep_millis=keep_millis)


def to_utc_iso8601(moment: WorkingMoment) -> str:
    """Format as UTC ISO-8601 with a ``Z`` suffix, with milliseconds only if kept."""
    utc = moment.value.in_timezone("UTC")
    text = (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
    )
    if moment.keep_millis:
        text += f".{utc.microsecond // 1000:03d}"
    return text + "Z"


def is_working_day(moment: WorkingMoment, holidays: HolidaySet) -> bool:
    """False on Saturdays, Sundays and dates present in ``holidays``."""
    return _is_working_date(moment.value, holidays)


def is_working_time(moment: WorkingMoment) -> bool:
    """True inside 08:00-12:00 or 13:00-17:00, or exactly at 17:00:00."""
    return _is_working_clock(moment.value)


def snap_to_working_moment(moment: WorkingMoment, holidays: HolidaySet) -> WorkingMoment:
    """
    Move a moment backward to the last valid working instant.

    Rules, in priority order:
        1. non-working date      -> 17:00 of the previous working day
        2. at/after 17:00        -> 17:00 of the same day
           inside lunch          -> 12:00 of the same day
        3. before 08:00          -> 17:00 of the previous working day
        4. otherwise unchanged

    Never moves a moment forward.
    """
    current = moment.value

    if not _is_working_date(current, holidays):
        return moment.with_value(_at(_previous_working_date(current, holidays), WORK_END))

    clock = current.time()
    if clock >= WORK_END:
        return moment.with_value(_at(current, WORK_END))
    if LUNCH_START <= clock < LUNCH_END:
        return moment.with_value(_at(current, LUNCH_START))
    if clock < WORK_START:
        return moment.with_value(_at(_previous_working_date(current, holidays), WORK_END))

    return moment


def add_working_days(moment: WorkingMoment, days: int, holidays: HolidaySet) -> WorkingMoment:
    """
    Step the date forward until ``days`` working days have been counted.

    Precondition: ``moment`` has been snapped. The time of day is carried over
    untouched; ``add_working_hours`` applies its own landing corrections.
    """
    if days <= 0:
        return moment

    current = moment.value
    for _ in range(days):
        current = _next_working_date(current, holidays)

    return moment.with_value(current)


def add_working_hours(moment: WorkingMoment, hours: int, holidays: HolidaySet) -> WorkingMoment:
    """
    Add ``hours`` of business time, skipping every non-working interval.

    Whole multiples of a working day are applied with ``add_working_days``;
    only the remainder (< 8 h) is walked through the day's working blocks.
    The result never falls in lunch or on a non-working day, and landing
    exactly on 17:00 is final.
    """
    if hours <= 0:
        return moment

    current = _next_open_instant(moment.value, holidays)
    full_days, remainder = divmod(hours, WORKING_HOURS_PER_DAY)

    if full_days:
        if current.time() == WORK_START:
            # 08:00 and the previous day's 17:00 are the same point in business time
            current = _at(_previous_working_date(current, holidays), WORK_END)
        current = add_working_days(moment.with_value(current), full_days, holidays).value

    current = _consume(current, timedelta(minutes=remainder * 60), holidays)

    if not _is_working_clock(current):
        current = _next_open_instant(current, holidays)

    return moment.with_value(current)


def advance(
    moment: WorkingMoment,
    holidays: HolidaySet,
    *,
    days: int = 0,
    hours: int = 0,
) -> WorkingMoment:
    """Snap, then add working days, then add working hours."""
    snapped = snap_to_working_moment(moment, holidays)
    with_days = add_working_days(snapped, days, holidays)
    return add_working_hours(with_days, hours, holidays)


def _consume(current: DateTime, remaining: timedelta, holidays: HolidaySet) -> DateTime:
    """Spend ``remaining`` working time block by block, starting at ``current``."""
    while remaining > timedelta(0):
        current = _next_open_instant(current, holidays)
        block_end = LUNCH_START if current.time() < LUNCH_START else WORK_END
        available = _since_midnight(block_end) - _since_midnight(current.time())
        step = min(remaining, available)
        current = current + step
        remaining -= step
    return current


def _next_open_instant(current: DateTime, holidays: HolidaySet) -> DateTime:
    """Roll forward to the nearest instant from which working time can be spent."""
    if not _is_working_date(current, holidays):
        return _at(_next_working_date(current, holidays), WORK_START)

    clock = current.time()
    if clock < WORK_START:
        return _at(current, WORK_START)
    if LUNCH_START <= clock < LUNCH_END:
        return _at(current, LUNCH_END)
    if clock >= WORK_END:
        return _at(_next_working_date(current, holidays), WORK_START)

    return current


def _next_working_date(current: DateTime, holidays: HolidaySet) -> DateTime:
    return _step_to_working_date(current, holidays, 1)


def _previous_working_date(current: DateTime, holidays: HolidaySet) -> DateTime:
    return _step_to_working_date(current, holidays, -1)


def _step_to_working_date(current: DateTime, holidays: HolidaySet, direction: int) -> DateTime:
    # A run of non-working days holds at most len(holidays) weekdays plus the weekends around them.
    limit = 2 * len(holidays) + 7
    candidate = current
    for _ in range(limit):
        candidate = candidate.add(days=direction)
        if _is_working_date(candidate, holidays):
            return candidate

    raise CalendarInvariantError(
        f"No working day found within {limit} days of {current.to_date_string()}"
    )


def _is_working_date(value: DateTime, holidays: HolidaySet) -> bool:
    return value.weekday() < 5 and value.date() not in holidays


def _is_working_clock(value: DateTime) -> bool:
    clock = value.time()
    return (
        WORK_START <= clock < LUNCH_START
        or LUNCH_END <= clock < WORK_END
        or clock == WORK_END
    )


def _at(value: DateTime, clock: time) -> DateTime:
    return value.set(hour=clock.hour, minute=clock.minute, second=0, microsecond=0)


def _since_midnight(clock: time) -> timedelta:
    return timedelta(
        hours=clock.hour,
        minutes=clock.minute,
        seconds=clock.second,
        microseconds=clock.microsecond,
    )

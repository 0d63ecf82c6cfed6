"""
Application service for calculating business-time deadlines.

The service fetches the holiday list once per request and hands a frozen
``HolidaySet`` to the pure calendar engine. The holiday dependency is typed
against the ``HolidaySource`` protocol, so tests can plug in a stub.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..domain import working_calendar
from ..domain.exceptions import HolidaySourceError
from ..domain.models import Holiday, HolidaySet
from .holiday_source import HolidaySource

logger = logging.getLogger(__name__)


class CalculationRequest(BaseModel):
    """Input for a single calculation: working days, working hours and an optional start."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    days: Optional[int] = Field(default=None, ge=0)
    hours: Optional[int] = Field(default=None, ge=0)
    start_instant: Optional[str] = Field(default=None, alias="date")

    @field_validator("start_instant")
    @classmethod
    def validate_start_instant(cls, value: Optional[str]) -> Optional[str]:
        """Require a UTC ISO-8601 instant ending in ``Z``."""
        if value is None:
            return value
        try:
            parsed = pendulum.parse(value)
        except ValueError as exc:
            raise ValueError('The "date" parameter must be a valid ISO 8601 string.') from exc
        if not isinstance(parsed, DateTime):
            raise ValueError('The "date" parameter must be a valid ISO 8601 string.')
        if not value.endswith("Z"):
            raise ValueError('The "date" parameter must be in UTC and end with "Z".')
        return value

    @model_validator(mode="after")
    def validate_days_or_hours(self) -> "CalculationRequest":
        """At least one of days/hours has to be given."""
        if self.days is None and self.hours is None:
            raise ValueError("At least one of 'days' or 'hours' must be provided.")
        return self


class CalculationService:
    """Orchestrates holiday retrieval and the working-calendar arithmetic."""

    def __init__(self, holiday_source: HolidaySource) -> None:
        self._holiday_source = holiday_source

    async def calculate(self, request: CalculationRequest) -> str:
        """
        Compute the resulting instant for ``request``.

        Returns:
            UTC ISO-8601 string ending in ``Z``; milliseconds are present only
            if the start instant carried them.
        """
        holidays = HolidaySet.from_holidays(await self._load_holidays())

        start = working_calendar.from_utc(request.start_instant)
        result = working_calendar.advance(
            start,
            holidays,
            days=request.days or 0,
            hours=request.hours or 0,
        )

        logger.debug(
            "Calculated %s + %sd %sh -> %s (%d holidays)",
            start,
            request.days or 0,
            request.hours or 0,
            result,
            len(holidays),
        )
        return working_calendar.to_utc_iso8601(result)

    async def _load_holidays(self) -> List[Holiday]:
        try:
            return await self._holiday_source.find_all()
        except HolidaySourceError as exc:
            logger.warning("Holiday lookup failed, calculating without holidays: %s", exc)
            return []

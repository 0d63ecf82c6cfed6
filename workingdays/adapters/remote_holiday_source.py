"""
Remote holiday source that fetches dates from a JSON endpoint.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import HolidaySourceError
from ..domain.models import BUSINESS_TIMEZONE, PLACEHOLDER_HOLIDAY_NAME, Holiday

logger = logging.getLogger(__name__)


class RemoteHolidaySource:
    """
    Read-only client for the holiday endpoint.

    The endpoint answers with a JSON array; each entry is either a date
    string or an object with ``date`` and an optional ``name``:

        ["2025-01-01", {"date": "2025-01-06", "name": "Reyes Magos"}]

    Entries without a usable date are dropped with a warning.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            url: Endpoint returning the holiday list
            timeout: Request timeout in seconds
            session: Optional requests session (a fresh one is created otherwise)
        """
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    async def find_all(self) -> List[Holiday]:
        """
        Fetch and map all holidays from the endpoint.

        Raises:
            HolidaySourceError: If the request fails or the payload is not a list
        """
        payload = await asyncio.to_thread(self._fetch)
        holidays = self._parse_payload(payload)
        logger.info("Fetched %d holidays from %s", len(holidays), self.url)
        return holidays

    async def save(self, holidays: Sequence[Holiday]) -> None:
        logger.warning(
            "RemoteHolidaySource is read-only; ignoring %d holidays", len(holidays)
        )

    def _fetch(self) -> Any:
        try:
            response = self._session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException as exc:
            raise HolidaySourceError(f"Failed to fetch holidays from {self.url}: {exc}") from exc
        except ValueError as exc:
            raise HolidaySourceError(f"Holiday endpoint returned invalid JSON: {exc}") from exc

    def _parse_payload(self, payload: Any) -> List[Holiday]:
        if not isinstance(payload, list):
            raise HolidaySourceError(
                f"Expected a JSON array from {self.url}, got {type(payload).__name__}"
            )

        by_date: Dict[date, Holiday] = {}

        for entry in payload:
            if isinstance(entry, dict):
                raw_date = entry.get("date")
                name = entry.get("name") or PLACEHOLDER_HOLIDAY_NAME
            else:
                raw_date = entry
                name = PLACEHOLDER_HOLIDAY_NAME

            holiday_date = self._parse_date(raw_date)
            if holiday_date is None:
                logger.warning("Invalid date format received from holiday endpoint: %r", raw_date)
                continue

            by_date[holiday_date] = Holiday(date=holiday_date, name=str(name))

        return sorted(by_date.values(), key=lambda holiday: holiday.date)

    @staticmethod
    def _parse_date(raw_date: Any) -> Optional[date]:
        """Parse a date string as a calendar day in the business timezone."""
        if not isinstance(raw_date, str):
            return None

        try:
            parsed = pendulum.parse(raw_date, tz=BUSINESS_TIMEZONE)
        except ValueError:
            return None

        if not isinstance(parsed, DateTime):
            return None

        return parsed.in_timezone(BUSINESS_TIMEZONE).date()

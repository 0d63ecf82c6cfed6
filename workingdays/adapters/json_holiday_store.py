"""
Persisted holiday store backed by a JSON document on disk.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from ..domain.exceptions import HolidayStoreError
from ..domain.models import Holiday

logger = logging.getLogger(__name__)


class JsonHolidayStore:
    """
    Stores holidays as a JSON array of ``{"date", "name"}`` records.

    Writes are upserts keyed by date: no duplicates, the later write wins.
    File access runs in a worker thread so callers on the event loop never
    block on disk I/O.
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document (created on first save)
        """
        self.path = Path(path)
        self._lock = threading.Lock()

    async def find_all(self) -> List[Holiday]:
        """Return stored holidays sorted by date; empty if nothing was saved yet."""
        return await asyncio.to_thread(self._read)

    async def save(self, holidays: Sequence[Holiday]) -> None:
        """Upsert the given holidays into the store."""
        if not holidays:
            return
        await asyncio.to_thread(self._upsert, list(holidays))

    def last_written(self) -> Optional[DateTime]:
        """Modification instant of the backing file, or None if it does not exist."""
        try:
            return pendulum.from_timestamp(self.path.stat().st_mtime)
        except FileNotFoundError:
            return None

    def _read(self) -> List[Holiday]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                records = json.load(file_handle)
        except OSError as exc:
            raise HolidayStoreError(f"Could not read holiday store {self.path}: {exc}") from exc
        except ValueError as exc:
            raise HolidayStoreError(f"Invalid JSON in holiday store {self.path}: {exc}") from exc

        if not isinstance(records, list):
            raise HolidayStoreError(f"Holiday store {self.path} must contain a JSON array.")

        try:
            holidays = [Holiday.from_record(record) for record in records]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise HolidayStoreError(f"Malformed record in holiday store {self.path}: {exc}") from exc

        return sorted(holidays, key=lambda holiday: holiday.date)

    def _upsert(self, holidays: List[Holiday]) -> None:
        with self._lock:
            merged: Dict[str, Holiday] = {
                holiday.date.isoformat(): holiday for holiday in self._read()
            }
            for holiday in holidays:
                merged[holiday.date.isoformat()] = holiday

            records = [merged[key].to_record() for key in sorted(merged)]
            self._write(records)

        logger.debug("Upserted %d holidays into %s", len(holidays), self.path)

    def _write(self, records: List[Dict[str, str]]) -> None:
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as file_handle:
                json.dump(records, file_handle, indent=2, ensure_ascii=False)
            temp_path.replace(self.path)
        except OSError as exc:
            raise HolidayStoreError(f"Could not write holiday store {self.path}: {exc}") from exc

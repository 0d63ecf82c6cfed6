"""
Contract shared by every holiday data source.
"""

from __future__ import annotations

from typing import List, Protocol, Sequence

from ..domain.models import Holiday


class HolidaySource(Protocol):
    """
    Protocol describing where holiday dates come from.

    Implemented by the persisted store, the remote endpoint, and the cache
    strategy that composes the two.
    """

    async def find_all(self) -> List[Holiday]:
        """Return every known holiday."""

    async def save(self, holidays: Sequence[Holiday]) -> None:
        """Persist holidays (upsert by date where supported)."""

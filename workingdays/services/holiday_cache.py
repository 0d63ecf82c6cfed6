"""
Time-to-live cache over the persisted store and the remote holiday source.

The strategy itself satisfies ``HolidaySource``, so the calculation service
does not know whether holidays come from disk or from the network.

Lookup order for ``find_all``:
    1. fresh cache  -> persisted store (if it holds anything)
    2. otherwise    -> remote source, persisted in the background
    3. remote empty -> whatever the store holds, even if stale
    4. nothing      -> empty list (calculate as if there were no holidays)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Sequence, Set

import pendulum
from pendulum import DateTime

from ..domain.exceptions import HolidaySourceError
from ..domain.models import Holiday
from .holiday_source import HolidaySource

logger = logging.getLogger(__name__)


def _utc_now() -> DateTime:
    return pendulum.now("UTC")


class HolidayCacheStrategy:
    """
    Serves holidays from the store while fresh, refreshing from the remote when stale.

    Concurrent callers that find the cache stale share a single remote fetch.
    """

    def __init__(
        self,
        store: HolidaySource,
        remote: HolidaySource,
        ttl_seconds: int,
        clock: Optional[Callable[[], DateTime]] = None,
        last_refresh: Optional[DateTime] = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._ttl_seconds = ttl_seconds
        self._clock = clock or _utc_now
        self._last_refresh = last_refresh
        self._inflight: Optional[asyncio.Future] = None
        self._pending_writes: Set[asyncio.Future] = set()

    @property
    def last_refresh(self) -> Optional[DateTime]:
        return self._last_refresh

    def is_fresh(self) -> bool:
        """True if the last successful refresh is younger than the TTL."""
        if self._last_refresh is None:
            return False
        age = (self._clock() - self._last_refresh).total_seconds()
        return age < self._ttl_seconds

    async def find_all(self) -> List[Holiday]:
        if self.is_fresh():
            cached = await self._read_store()
            if cached:
                logger.info("Serving %d holidays from cache", len(cached))
                return cached

        logger.info("Holiday cache stale or empty; fetching from remote source")
        fetched = await self._fetch_remote_once()

        if fetched:
            return fetched

        fallback = await self._read_store()
        if fallback:
            logger.warning(
                "Remote holiday source returned nothing; serving %d stored holidays",
                len(fallback),
            )
        else:
            logger.warning("No holiday data available; calculating without holidays")
        return fallback

    async def save(self, holidays: Sequence[Holiday]) -> None:
        await self._store.save(holidays)
        self._last_refresh = self._clock()

    async def refresh(self) -> List[Holiday]:
        """
        Fetch from the remote source and persist the result.

        Unlike ``find_all`` this surfaces source and store failures.
        """
        fetched = await self._remote.find_all()
        if fetched:
            await self.save(fetched)
        return fetched

    async def wait_for_pending_writes(self) -> None:
        """Wait for background persistence started by ``find_all`` to finish."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    async def _read_store(self) -> List[Holiday]:
        try:
            return await self._store.find_all()
        except HolidaySourceError as exc:
            logger.error("Could not read holiday store: %s", exc)
            return []

    async def _fetch_remote_once(self) -> List[Holiday]:
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._fetch_remote())
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            logger.debug("Joining in-flight holiday fetch")
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future) -> None:
        if self._inflight is future:
            self._inflight = None

    async def _fetch_remote(self) -> List[Holiday]:
        try:
            fetched = await self._remote.find_all()
        except HolidaySourceError as exc:
            logger.error("Failed to fetch holidays from remote source: %s", exc)
            return []

        if fetched:
            self._persist_in_background(fetched)
        return fetched

    def _persist_in_background(self, holidays: List[Holiday]) -> None:
        task = asyncio.ensure_future(self._persist(holidays))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _persist(self, holidays: List[Holiday]) -> None:
        try:
            await self.save(holidays)
        except Exception:
            logger.exception("Failed to update holiday cache; serving fetched data anyway")
            return
        logger.info("Holiday cache updated with %d holidays", len(holidays))

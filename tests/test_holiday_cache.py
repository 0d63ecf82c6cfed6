"""
Tests for the TTL cache strategy over the store and remote holiday sources.
"""

import asyncio
from datetime import date
from typing import List, Optional

import pendulum
import pytest

from workingdays.domain.exceptions import HolidaySourceError, HolidayStoreError
from workingdays.domain.models import Holiday
from workingdays.services.holiday_cache import HolidayCacheStrategy

STORED = [Holiday(date(2025, 1, 1), "Año Nuevo")]
REMOTE = [Holiday(date(2025, 1, 1)), Holiday(date(2025, 1, 6))]


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now.add(seconds=seconds)


class StubSource:
    """In-memory holiday source recording calls, with optional failures and delays."""

    def __init__(
        self,
        holidays: Optional[List[Holiday]] = None,
        find_error: Optional[Exception] = None,
        save_error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.holidays = list(holidays or [])
        self.find_error = find_error
        self.save_error = save_error
        self.delay = delay
        self.find_calls = 0
        self.saved: List[List[Holiday]] = []
        self.save_gate: Optional[asyncio.Event] = None

    async def find_all(self):
        self.find_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.find_error is not None:
            raise self.find_error
        return list(self.holidays)

    async def save(self, holidays):
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.save_error is not None:
            raise self.save_error
        self.saved.append(list(holidays))
        self.holidays = list(holidays)


@pytest.fixture
def clock():
    return FakeClock(pendulum.datetime(2025, 9, 24, 12, 0, tz="UTC"))


def _cache(store, remote, clock, ttl=3600, last_refresh=None):
    return HolidayCacheStrategy(
        store=store,
        remote=remote,
        ttl_seconds=ttl,
        clock=clock,
        last_refresh=last_refresh,
    )


def test_cold_cache_fetches_remote_and_persists(clock):
    store, remote = StubSource(), StubSource(REMOTE)
    cache = _cache(store, remote, clock)

    async def scenario():
        holidays = await cache.find_all()
        await cache.wait_for_pending_writes()
        return holidays

    holidays = asyncio.run(scenario())

    assert holidays == REMOTE
    assert remote.find_calls == 1
    assert store.saved == [REMOTE]
    assert cache.last_refresh == clock.now


def test_fresh_cache_serves_store(clock):
    store, remote = StubSource(STORED), StubSource(REMOTE)
    cache = _cache(store, remote, clock, last_refresh=clock.now.subtract(seconds=10))

    holidays = asyncio.run(cache.find_all())

    assert holidays == STORED
    assert holidays[0].name == "Año Nuevo"
    assert remote.find_calls == 0


def test_fresh_cache_with_empty_store_falls_through_to_remote(clock):
    store, remote = StubSource(), StubSource(REMOTE)
    cache = _cache(store, remote, clock, last_refresh=clock.now)

    assert asyncio.run(cache.find_all()) == REMOTE
    assert remote.find_calls == 1


def test_expired_ttl_refetches(clock):
    store, remote = StubSource(STORED), StubSource(REMOTE)
    cache = _cache(store, remote, clock, ttl=60, last_refresh=clock.now)

    assert cache.is_fresh()
    clock.advance(60)
    assert not cache.is_fresh()

    assert asyncio.run(cache.find_all()) == REMOTE
    assert remote.find_calls == 1


def test_remote_failure_with_empty_store_degrades_to_no_holidays(clock):
    store = StubSource()
    remote = StubSource(find_error=HolidaySourceError("endpoint down"))
    cache = _cache(store, remote, clock)

    assert asyncio.run(cache.find_all()) == []
    assert store.saved == []
    assert cache.last_refresh is None


def test_remote_failure_serves_stale_store(clock):
    store = StubSource(STORED)
    remote = StubSource(find_error=HolidaySourceError("endpoint down"))
    cache = _cache(store, remote, clock, ttl=60, last_refresh=clock.now.subtract(days=2))

    assert asyncio.run(cache.find_all()) == STORED


def test_store_read_failure_is_treated_as_empty(clock):
    store = StubSource(find_error=HolidayStoreError("corrupt file"))
    remote = StubSource(REMOTE)
    cache = _cache(store, remote, clock, last_refresh=clock.now)

    assert asyncio.run(cache.find_all()) == REMOTE


def test_persistence_failure_is_swallowed(clock):
    store = StubSource(save_error=HolidayStoreError("disk full"))
    remote = StubSource(REMOTE)
    cache = _cache(store, remote, clock)

    async def scenario():
        holidays = await cache.find_all()
        await cache.wait_for_pending_writes()
        return holidays

    assert asyncio.run(scenario()) == REMOTE
    assert cache.last_refresh is None


def test_fetched_list_returned_before_persistence_completes(clock):
    store, remote = StubSource(), StubSource(REMOTE)
    cache = _cache(store, remote, clock)

    async def scenario():
        store.save_gate = asyncio.Event()
        holidays = await cache.find_all()
        saved_before_release = list(store.saved)
        store.save_gate.set()
        await cache.wait_for_pending_writes()
        return holidays, saved_before_release

    holidays, saved_before_release = asyncio.run(scenario())

    assert holidays == REMOTE
    assert saved_before_release == []
    assert store.saved == [REMOTE]


def test_concurrent_stale_requests_share_one_remote_fetch(clock):
    store, remote = StubSource(), StubSource(REMOTE, delay=0.01)
    cache = _cache(store, remote, clock)

    async def scenario():
        results = await asyncio.gather(*(cache.find_all() for _ in range(5)))
        await cache.wait_for_pending_writes()
        return results

    results = asyncio.run(scenario())

    assert all(result == REMOTE for result in results)
    assert remote.find_calls == 1
    assert len(store.saved) == 1


def test_save_delegates_to_store_and_marks_fresh(clock):
    store, remote = StubSource(), StubSource()
    cache = _cache(store, remote, clock)

    asyncio.run(cache.save(STORED))

    assert store.saved == [STORED]
    assert cache.last_refresh == clock.now
    assert cache.is_fresh()


def test_refresh_persists_and_surfaces_failures(clock):
    store, remote = StubSource(), StubSource(REMOTE)
    cache = _cache(store, remote, clock)

    assert asyncio.run(cache.refresh()) == REMOTE
    assert store.saved == [REMOTE]

    failing = _cache(StubSource(), StubSource(find_error=HolidaySourceError("endpoint down")), clock)
    with pytest.raises(HolidaySourceError):
        asyncio.run(failing.refresh())

"""
Explicit construction of the service graph at process start.

    CalculationService -> HolidayCacheStrategy -> (JsonHolidayStore, RemoteHolidaySource)
"""

from __future__ import annotations

from typing import Optional

from ..adapters.json_holiday_store import JsonHolidayStore
from ..adapters.remote_holiday_source import RemoteHolidaySource
from ..config import AppConfig
from .calculation import CalculationService
from .holiday_cache import HolidayCacheStrategy
from .holiday_source import HolidaySource


def build_holiday_cache(config: AppConfig) -> HolidayCacheStrategy:
    """
    Compose the store and the remote endpoint behind the TTL cache.

    Freshness is seeded from the store file's modification time, so separate
    processes sharing one store do not each refetch on start-up.
    """
    store = JsonHolidayStore(config.holidays.store_path)
    remote = RemoteHolidaySource(
        url=config.holidays.api_url,
        timeout=config.holidays.request_timeout_seconds,
    )
    return HolidayCacheStrategy(
        store=store,
        remote=remote,
        ttl_seconds=config.holidays.cache_ttl_seconds,
        last_refresh=store.last_written(),
    )


def build_calculation_service(
    config: AppConfig,
    holiday_source: Optional[HolidaySource] = None,
) -> CalculationService:
    """Build the calculation service, defaulting to the cached holiday source."""
    if holiday_source is None:
        holiday_source = build_holiday_cache(config)
    return CalculationService(holiday_source=holiday_source)

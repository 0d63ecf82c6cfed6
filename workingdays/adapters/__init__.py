"""
Adapters layer - External integrations (holiday endpoint, on-disk store).
"""

from .json_holiday_store import JsonHolidayStore
from .remote_holiday_source import RemoteHolidaySource

__all__ = ["JsonHolidayStore", "RemoteHolidaySource"]

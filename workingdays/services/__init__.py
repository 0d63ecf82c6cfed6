"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .calculation import CalculationRequest, CalculationService
from .holiday_cache import HolidayCacheStrategy
from .holiday_source import HolidaySource
from .wiring import build_calculation_service, build_holiday_cache

__all__ = [
    "CalculationRequest",
    "CalculationService",
    "HolidayCacheStrategy",
    "HolidaySource",
    "build_calculation_service",
    "build_holiday_cache",
]

"""Common types and helpers shared across models."""

from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import TypeAlias

TargetId: TypeAlias = str
Clock: TypeAlias = Callable[[], datetime]

class Pollutant(StrEnum):
    PM25 = "pm25"
    PM10 = "pm10"
    O3 = "o3"
    NO2 = "no2"
    SO2 = "so2"
    CO = "co"

# Pollutants the upstream publishes daily forecasts for, in priority order.
FORECAST_POLLUTANTS: tuple[Pollutant, ...] = (Pollutant.PM25, Pollutant.PM10, Pollutant.O3)

def utc_now() -> datetime:
    return datetime.now(UTC)

def normalize_target(target: str) -> TargetId:
    """Targets are matched case-insensitively (``Sarajevo`` == ``sarajevo``)."""
    return target.strip().lower()

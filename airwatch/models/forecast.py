"""Forecast models: per-pollutant day series and aligned day entries."""

from dataclasses import dataclass, field
from datetime import date, datetime

from airwatch.models.common import Pollutant


@dataclass(frozen=True)
class DayPoint:
    day: date
    avg: float | None
    min: float | None
    max: float | None


@dataclass(frozen=True)
class PollutantRange:
    avg: float | None
    min: float | None
    max: float | None


@dataclass(frozen=True)
class ForecastDayEntry:
    day: date
    ranges: dict[Pollutant, PollutantRange | None]
    index: int
    category: str
    color: str

    @property
    def pm25(self) -> PollutantRange | None:
        return self.ranges.get(Pollutant.PM25)

    @property
    def pm10(self) -> PollutantRange | None:
        return self.ranges.get(Pollutant.PM10)

    @property
    def o3(self) -> PollutantRange | None:
        return self.ranges.get(Pollutant.O3)


@dataclass(frozen=True)
class ForecastView:
    target: str
    days: list[ForecastDayEntry] = field(default_factory=list)
    timestamp: datetime | None = None

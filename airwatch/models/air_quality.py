"""Live air quality models: fetch payloads, persisted snapshots, cached views."""

from dataclasses import dataclass, field
from datetime import date, datetime

from airwatch.models.common import Pollutant
from airwatch.models.forecast import DayPoint, ForecastView

MEASUREMENT_UNITS: dict[Pollutant, str] = {
    Pollutant.PM25: "µg/m³",
    Pollutant.PM10: "µg/m³",
    Pollutant.O3: "µg/m³",
    Pollutant.NO2: "µg/m³",
    Pollutant.SO2: "µg/m³",
    Pollutant.CO: "mg/m³",
}


@dataclass(frozen=True)
class RawPayload:
    """One parsed upstream feed response."""

    station_name: str
    timestamp: datetime
    index: int
    dominant_pollutant: str
    concentrations: dict[Pollutant, float | None]
    forecast: dict[Pollutant, list[DayPoint]] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricSnapshot:
    target: str
    timestamp: datetime  # UTC
    index: int
    dominant_pollutant: str
    concentrations: dict[Pollutant, float | None] = field(default_factory=dict)


@dataclass(frozen=True)
class Measurement:
    pollutant: Pollutant
    value: float
    unit: str


@dataclass(frozen=True)
class LiveView:
    target: str
    station_name: str
    index: int
    category: str
    color: str
    health_message: str
    dominant_pollutant: str
    measurements: list[Measurement]
    timestamp: datetime


@dataclass(frozen=True)
class TimelineEntry:
    day: date
    day_name: str
    short_day: str
    index: int
    category: str
    color: str


@dataclass(frozen=True)
class TimelineView:
    target: str
    period: str
    entries: list[TimelineEntry]
    timestamp: datetime


@dataclass(frozen=True)
class CompleteView:
    """Live reading plus forecast; the forecast may have no days."""

    live: LiveView
    forecast: ForecastView
    timestamp: datetime


@dataclass(frozen=True)
class HistoryView:
    target: str
    days: int
    samples: list[MetricSnapshot]  # oldest first
    timestamp: datetime


@dataclass(frozen=True)
class ComparisonEntry:
    target: str
    city: str
    index: int | None
    category: str
    color: str
    dominant_pollutant: str | None = None
    timestamp: datetime | None = None
    error: str | None = None


@dataclass(frozen=True)
class ComparisonView:
    entries: list[ComparisonEntry]
    compared_at: datetime

    @property
    def total(self) -> int:
        return len(self.entries)

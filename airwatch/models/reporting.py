"""Refresh outcome models."""

from dataclasses import dataclass, field
from datetime import datetime

from airwatch.models.air_quality import MetricSnapshot


@dataclass(frozen=True)
class RefreshResult:
    target: str
    snapshot: MetricSnapshot
    written: bool
    forecast_days: int


@dataclass
class CycleReport:
    cycle: int
    started_at: datetime
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failed

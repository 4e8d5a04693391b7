"""Output formatters for views and refresh cycle reports."""

import dataclasses
import json
from typing import Any

from airwatch.classify.health_groups import GroupStatus
from airwatch.models.air_quality import (
    ComparisonView,
    CompleteView,
    HistoryView,
    LiveView,
    TimelineView,
)
from airwatch.models.forecast import ForecastView, PollutantRange
from airwatch.models.reporting import CycleReport


def format_cycle_text(r: CycleReport) -> str:
    """Plain text summary for logging and the `refresh` command."""
    lines = [
        f"=== Refresh cycle #{r.cycle} | {r.started_at:%Y-%m-%d %H:%M:%S}Z ===",
        f"Refreshed: {len(r.succeeded)} ok, {len(r.failed)} failed, {len(r.skipped)} skipped",
    ]
    for target, error in sorted(r.failed.items()):
        lines.append(f"  FAILED {target}: {error}")
    lines.append(f"Duration: {r.duration_seconds:.1f}s")
    return "\n".join(lines)


def format_live_text(v: LiveView) -> str:
    lines = [
        f"{v.station_name} | AQI {v.index} ({v.category}) {v.color}",
        f"Dominant pollutant: {v.dominant_pollutant}",
        v.health_message,
    ]
    for m in v.measurements:
        lines.append(f"  {m.pollutant.value:<5} {m.value:>8.1f} {m.unit}")
    lines.append(f"Updated: {v.timestamp.isoformat()}")
    return "\n".join(lines)


def _range_text(r: PollutantRange | None) -> str:
    if r is None or r.avg is None:
        return "-"
    if r.min is None or r.max is None:
        return f"{r.avg:g}"
    return f"{r.avg:g} ({r.min:g}-{r.max:g})"


def format_forecast_text(v: ForecastView) -> str:
    lines = [f"Forecast for {v.target}:"]
    if not v.days:
        lines.append("  (no forecast days)")
    for d in v.days:
        lines.append(
            f"  {d.day.isoformat()}  AQI {d.index:>3} {d.category:<32} "
            f"pm25 {_range_text(d.pm25)} | pm10 {_range_text(d.pm10)} | o3 {_range_text(d.o3)}"
        )
    return "\n".join(lines)


def format_timeline_text(v: TimelineView) -> str:
    lines = [f"{v.target}: {v.period}"]
    for e in v.entries:
        lines.append(f"  {e.short_day} {e.day.isoformat()}  AQI {e.index:>3} {e.category}")
    return "\n".join(lines)


def format_complete_text(v: CompleteView) -> str:
    return format_live_text(v.live) + "\n\n" + format_forecast_text(v.forecast)


def format_history_text(v: HistoryView) -> str:
    lines = [f"{v.target}: {len(v.samples)} snapshots in the last {v.days} days"]
    for s in v.samples:
        lines.append(f"  {s.timestamp:%Y-%m-%d %H:%M}Z  AQI {s.index:>3} {s.dominant_pollutant}")
    return "\n".join(lines)


def format_comparison_text(v: ComparisonView) -> str:
    lines = [f"Compared {v.total} cities at {v.compared_at:%Y-%m-%d %H:%M:%S}Z"]
    for e in v.entries:
        if e.index is None:
            lines.append(f"  {e.city:<16} {e.category} ({e.error})")
        else:
            lines.append(f"  {e.city:<16} AQI {e.index:>3} {e.category} {e.color}")
    return "\n".join(lines)


def format_groups_text(index: int, statuses: list[GroupStatus]) -> str:
    lines = [f"Sensitive groups at AQI {index}:"]
    for s in statuses:
        lines.append(f"  {s.group.name:<11} [{s.risk_level}] {s.recommendation}")
    return "\n".join(lines)


def format_json(view: Any) -> str:
    """JSON for any view dataclass; dates and enums serialize as strings."""
    return json.dumps(dataclasses.asdict(view), indent=2, default=str, ensure_ascii=False)

"""Merge independent per-pollutant day series into one ordered daily forecast."""

import logging
from collections.abc import Iterable, Mapping
from datetime import date

from airwatch.classify.aqi import classify_index, convert_concentration_to_index
from airwatch.models.common import FORECAST_POLLUTANTS, Pollutant
from airwatch.models.forecast import DayPoint, ForecastDayEntry, PollutantRange

logger = logging.getLogger(__name__)

DEFAULT_MAX_DAYS = 7


def align(
    series: Mapping[Pollutant, Iterable[DayPoint]],
    window_start: date,
    max_days: int = DEFAULT_MAX_DAYS,
    priority: tuple[Pollutant, ...] = FORECAST_POLLUTANTS,
) -> list[ForecastDayEntry]:
    """Build at most ``max_days`` forecast entries starting at ``window_start``.

    Each day carries a range for every pollutant that actually has a point on
    that date; the others are None. The day's index comes from the first
    pollutant in ``priority`` with a non-null average on that date, converted
    with the PM2.5 breakpoint table. A day with none of them gets index 0.
    """
    if max_days < 0:
        raise ValueError(f"max_days must not be negative, got {max_days}")

    accumulator: dict[date, dict[Pollutant, PollutantRange]] = {}
    for pollutant, points in series.items():
        for point in points:
            slots = accumulator.setdefault(point.day, {})
            slots[pollutant] = PollutantRange(avg=point.avg, min=point.min, max=point.max)

    retained = [d for d in sorted(accumulator) if d >= window_start][:max_days]

    slots_shown = tuple(dict.fromkeys((*FORECAST_POLLUTANTS, *series.keys())))
    entries: list[ForecastDayEntry] = []
    for day in retained:
        slots = accumulator[day]
        index = _representative_index(slots, priority)
        classification = classify_index(index)
        entries.append(
            ForecastDayEntry(
                day=day,
                ranges={p: slots.get(p) for p in slots_shown},
                index=index,
                category=classification.label,
                color=classification.color,
            )
        )

    logger.debug(
        "Aligned %d pollutant series into %d forecast days from %s",
        len(series), len(entries), window_start.isoformat(),
    )
    return entries


def _representative_index(
    slots: Mapping[Pollutant, PollutantRange], priority: tuple[Pollutant, ...]
) -> int:
    for pollutant in priority:
        pollutant_range = slots.get(pollutant)
        if pollutant_range is not None and pollutant_range.avg is not None:
            return convert_concentration_to_index(pollutant_range.avg)
    return 0

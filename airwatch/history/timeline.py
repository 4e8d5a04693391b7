"""Rolling daily AQI history with carry-forward gap filling."""

import logging
from collections.abc import Callable
from datetime import date, timedelta

from airwatch.classify.aqi import classify_index, round_half_away
from airwatch.models.air_quality import MetricSnapshot, TimelineEntry, TimelineView
from airwatch.models.common import Clock, utc_now
from airwatch.storage.snapshot_repo import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 7
DEFAULT_FALLBACK_INDEX = 75  # "Moderate"


class TimelineBuilder:
    """Builds exactly ``window_days`` entries ending today (UTC), one per day.

    Days without persisted samples repeat the last known index. The value
    carried into the first day is seeded from, in order: the latest sample
    before the window, a fresh upstream fetch, then ``default_index``.
    """

    def __init__(
        self,
        store: SnapshotStore,
        fetch_index: Callable[[str], int] | None = None,
        clock: Clock = utc_now,
        default_index: int = DEFAULT_FALLBACK_INDEX,
    ):
        self.store = store
        self.fetch_index = fetch_index
        self.clock = clock
        self.default_index = default_index

    def build(self, target: str, window_days: int = DEFAULT_WINDOW_DAYS) -> list[TimelineEntry]:
        if window_days < 1:
            raise ValueError(f"window_days must be at least 1, got {window_days}")

        today = self.clock().date()
        start = today - timedelta(days=window_days - 1)

        by_day = self._samples_by_day(target, start, today)
        # The seed is only visible when the first day has no samples.
        last_known = self.default_index if by_day.get(start) else self._seed_index(target, start)

        entries: list[TimelineEntry] = []
        for offset in range(window_days):
            day = start + timedelta(days=offset)
            samples = by_day.get(day)
            if samples:
                last_known = round_half_away(sum(s.index for s in samples) / len(samples))
            entries.append(_entry(day, last_known))

        logger.info(
            "Built %d-day timeline for %s (%d days with samples)",
            window_days, target, len(by_day),
        )
        return entries

    def build_view(self, target: str, window_days: int = DEFAULT_WINDOW_DAYS) -> TimelineView:
        return TimelineView(
            target=target,
            period=f"Last {window_days} days",
            entries=self.build(target, window_days),
            timestamp=self.clock(),
        )

    def _samples_by_day(
        self, target: str, start: date, end: date
    ) -> dict[date, list[MetricSnapshot]]:
        try:
            samples = self.store.get_range(target, start, end)
        except Exception:
            logger.warning("History read failed for %s; treating window as empty", target, exc_info=True)
            return {}

        grouped: dict[date, list[MetricSnapshot]] = {}
        for sample in samples:
            grouped.setdefault(sample.timestamp.date(), []).append(sample)
        return grouped

    def _seed_index(self, target: str, window_start: date) -> int:
        try:
            previous = self.store.get_latest_before(target, window_start)
        except Exception:
            logger.warning("Seed lookup failed for %s", target, exc_info=True)
            previous = None
        if previous is not None:
            return previous.index

        if self.fetch_index is not None:
            try:
                return self.fetch_index(target)
            except Exception as e:
                logger.warning("Fresh fetch for %s timeline seed failed: %s", target, e)

        logger.info("No history for %s; seeding timeline with AQI %d", target, self.default_index)
        return self.default_index


def _entry(day: date, index: int) -> TimelineEntry:
    classification = classify_index(index)
    return TimelineEntry(
        day=day,
        day_name=day.strftime("%A"),
        short_day=day.strftime("%a"),
        index=index,
        category=classification.label,
        color=classification.color,
    )

"""Single-target refresh: fetch, persist-if-changed, align, publish to cache."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from airwatch.cache.ttl_cache import FORECAST_NAMESPACE, LIVE_NAMESPACE, TTLCache
from airwatch.classify.aqi import classify_index
from airwatch.forecast.aligner import DEFAULT_MAX_DAYS, align
from airwatch.models.air_quality import (
    MEASUREMENT_UNITS,
    LiveView,
    Measurement,
    MetricSnapshot,
    RawPayload,
)
from airwatch.models.common import Clock, TargetId, normalize_target, utc_now
from airwatch.models.forecast import ForecastView
from airwatch.models.reporting import RefreshResult
from airwatch.storage.snapshot_repo import SnapshotStore
from airwatch.storage.write_guard import PersistenceGuard

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self, target: str) -> RawPayload: ...


class RefreshPipeline:
    """Runs the ordered refresh steps for one target.

    fetch -> snapshot -> write decision -> store append -> forecast alignment
    -> cache publish. Any step's error aborts the remaining steps and
    propagates to the caller, so a failed write never publishes to the cache.

    ``resolve_target`` maps any accepted spelling of a target to the key used
    for the cache and the store.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        store: SnapshotStore,
        cache: TTLCache,
        guard: PersistenceGuard | None = None,
        clock: Clock = utc_now,
        forecast_max_days: int = DEFAULT_MAX_DAYS,
        resolve_target: Callable[[str], TargetId] = normalize_target,
    ):
        self.fetcher = fetcher
        self.store = store
        self.cache = cache
        self.guard = guard or PersistenceGuard(clock=clock)
        self.clock = clock
        self.forecast_max_days = forecast_max_days
        self.resolve_target = resolve_target

    def refresh(self, target: str) -> RefreshResult:
        key = self.resolve_target(target)
        payload = self.fetcher.fetch(key)
        fetched_at = self.clock()

        snapshot = MetricSnapshot(
            target=key,
            timestamp=fetched_at,
            index=payload.index,
            dominant_pollutant=payload.dominant_pollutant,
            concentrations={p: v for p, v in payload.concentrations.items() if v is not None},
        )

        last = self.store.get_latest(key)
        written = self.guard.should_write(key, snapshot.index, snapshot.timestamp, last)
        if written:
            self.store.append(snapshot)
            logger.info("Saved AQI snapshot for %s: %d", key, snapshot.index)

        forecast_view: ForecastView | None = None
        if payload.forecast:
            days = align(payload.forecast, fetched_at.date(), max_days=self.forecast_max_days)
            forecast_view = ForecastView(target=key, days=days, timestamp=fetched_at)
        else:
            logger.warning("Forecast data missing for %s", key)

        self.cache.set(LIVE_NAMESPACE, key, build_live_view(key, payload, fetched_at))
        if forecast_view is not None:
            self.cache.set(FORECAST_NAMESPACE, key, forecast_view)

        return RefreshResult(
            target=key,
            snapshot=snapshot,
            written=written,
            forecast_days=len(forecast_view.days) if forecast_view else 0,
        )

    def fetch_index(self, target: str) -> int:
        """Fresh upstream AQI for a target, bypassing cache and store."""
        return self.fetcher.fetch(self.resolve_target(target)).index


def build_live_view(target: str, payload: RawPayload, timestamp: datetime) -> LiveView:
    classification = classify_index(payload.index)
    measurements = [
        Measurement(pollutant=p, value=v, unit=MEASUREMENT_UNITS[p])
        for p, v in payload.concentrations.items()
        if v is not None
    ]
    return LiveView(
        target=target,
        station_name=payload.station_name or target,
        index=payload.index,
        category=classification.label,
        color=classification.color,
        health_message=classification.message,
        dominant_pollutant=payload.dominant_pollutant,
        measurements=measurements,
        timestamp=timestamp,
    )

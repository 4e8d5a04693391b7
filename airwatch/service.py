"""Cache-facing read API and application wiring."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta

from airwatch.cache.ttl_cache import FORECAST_NAMESPACE, LIVE_NAMESPACE, TTLCache
from airwatch.classify.health_groups import GroupStatus, group_statuses
from airwatch.config.schema import AppConfig
from airwatch.errors import AirwatchError, DataUnavailable
from airwatch.history.timeline import DEFAULT_WINDOW_DAYS, TimelineBuilder
from airwatch.ingest.fetcher import AirQualityFetcher
from airwatch.ingest.waqi_client import WaqiClient
from airwatch.models.air_quality import (
    ComparisonEntry,
    ComparisonView,
    CompleteView,
    HistoryView,
    LiveView,
    TimelineView,
)
from airwatch.models.common import Clock, TargetId, normalize_target, utc_now
from airwatch.models.forecast import ForecastView
from airwatch.pipeline.refresh_pipeline import RefreshPipeline
from airwatch.pipeline.scheduler import RefreshScheduler
from airwatch.storage.snapshot_repo import SqliteSnapshotStore
from airwatch.storage.write_guard import PersistenceGuard

logger = logging.getLogger(__name__)

DEFAULT_LIVE_TTL = timedelta(minutes=10)
DEFAULT_FORECAST_TTL = timedelta(hours=2)
MAX_HISTORY_DAYS = 30
NO_DATA_CATEGORY = "No Data"
NO_DATA_COLOR = "#cccccc"


class AirQualityService:
    """Serves live, forecast, timeline and group-advice views.

    Live and forecast reads go through the TTL cache. A miss or expired
    entry triggers one synchronous refresh of that target; refresh errors
    propagate to the caller, and an entry still missing afterwards raises
    DataUnavailable.

    Every target is first mapped through ``resolve_target`` so that a city's
    name and its slug share one cache entry and one history.
    """

    def __init__(
        self,
        cache: TTLCache,
        scheduler: RefreshScheduler,
        timeline: TimelineBuilder,
        live_ttl: timedelta = DEFAULT_LIVE_TTL,
        forecast_ttl: timedelta = DEFAULT_FORECAST_TTL,
        resolve_target: Callable[[str], TargetId] = normalize_target,
        clock: Clock = utc_now,
    ):
        self.cache = cache
        self.scheduler = scheduler
        self.timeline = timeline
        self.live_ttl = live_ttl
        self.forecast_ttl = forecast_ttl
        self.resolve_target = resolve_target
        self.clock = clock

    def get_live_view(self, target: str) -> LiveView:
        return self._read_through(LIVE_NAMESPACE, target, self.live_ttl)

    def get_forecast_view(self, target: str) -> ForecastView:
        return self._read_through(FORECAST_NAMESPACE, target, self.forecast_ttl)

    def get_complete_view(self, target: str) -> CompleteView:
        """Live view plus forecast. Only a missing forecast is tolerated."""
        live = self.get_live_view(target)
        try:
            forecast = self.get_forecast_view(target)
        except DataUnavailable:
            forecast = ForecastView(target=live.target, days=[], timestamp=self.clock())
        return CompleteView(live=live, forecast=forecast, timestamp=self.clock())

    def get_timeline_view(self, target: str, window_days: int = DEFAULT_WINDOW_DAYS) -> TimelineView:
        return self.timeline.build_view(self.resolve_target(target), window_days)

    def get_history(self, target: str, days: int = DEFAULT_WINDOW_DAYS) -> HistoryView:
        """Persisted snapshots from the last ``days`` UTC days, today included."""
        if not 1 <= days <= MAX_HISTORY_DAYS:
            raise ValueError(f"days must be between 1 and {MAX_HISTORY_DAYS}, got {days}")
        key = self.resolve_target(target)
        now = self.clock()
        today = now.date()
        samples = self.timeline.store.get_range(key, today - timedelta(days=days - 1), today)
        logger.info("Read %d history samples for %s over %d days", len(samples), key, days)
        return HistoryView(target=key, days=days, samples=samples, timestamp=now)

    def get_health_groups(self, target: str) -> list[GroupStatus]:
        return group_statuses(self.get_live_view(target).index)

    def compare_cities(self, targets: Iterable[str] | None = None) -> ComparisonView:
        """Live AQI side by side; a target that fails gets a "No Data" entry.

        Defaults to every scheduled target. Duplicate spellings of one city
        are compared once.
        """
        requested = self.scheduler.targets if targets is None else targets
        keys = list(dict.fromkeys(self.resolve_target(t) for t in requested if t.strip()))
        entries: list[ComparisonEntry] = []
        for key in keys:
            try:
                live = self.get_live_view(key)
            except AirwatchError as e:
                logger.warning("Failed to get AQI for %s: %s", key, e)
                entries.append(ComparisonEntry(
                    target=key,
                    city=key,
                    index=None,
                    category=NO_DATA_CATEGORY,
                    color=NO_DATA_COLOR,
                    error=str(e),
                ))
                continue
            entries.append(ComparisonEntry(
                target=key,
                city=live.station_name,
                index=live.index,
                category=live.category,
                color=live.color,
                dominant_pollutant=live.dominant_pollutant,
                timestamp=live.timestamp,
            ))
        return ComparisonView(entries=entries, compared_at=self.clock())

    def _read_through(self, namespace: str, target: str, ttl: timedelta):
        key = self.resolve_target(target)
        value, hit = self.cache.get(namespace, key, ttl)
        if hit:
            return value

        logger.info("No fresh %s data cached for %s, refreshing", namespace, key)
        self.scheduler.refresh_one(key)
        value, hit = self.cache.get(namespace, key, ttl)
        if not hit:
            raise DataUnavailable(key, namespace)
        return value


@dataclass
class App:
    config: AppConfig
    store: SqliteSnapshotStore
    cache: TTLCache
    pipeline: RefreshPipeline
    scheduler: RefreshScheduler
    service: AirQualityService

    def close(self) -> None:
        self.store.close()


def build_app(config: AppConfig, clock: Clock = utc_now) -> App:
    """Wire the client, store, cache, pipeline, scheduler and read service."""
    upstream = config.upstream
    if not upstream.token:
        logger.warning("No WAQI token configured; upstream requests will be rejected")

    client = WaqiClient(
        token=upstream.token,
        base_url=upstream.base_url,
        timeout=upstream.timeout_seconds,
        max_retries=upstream.max_retries,
        retry_base_delay=upstream.retry_base_delay_seconds,
    )
    cities = config.enabled_cities()
    fetcher = AirQualityFetcher(client, cities)
    store = SqliteSnapshotStore(config.persistence.db_path)
    cache = TTLCache(clock=clock)
    guard = PersistenceGuard(
        dedup_window=timedelta(minutes=config.persistence.dedup_window_minutes), clock=clock
    )
    pipeline = RefreshPipeline(
        fetcher, store, cache, guard=guard, clock=clock,
        forecast_max_days=config.forecast.max_days,
        resolve_target=fetcher.canonical,
    )
    scheduler = RefreshScheduler(
        pipeline,
        [c.slug for c in cities],
        interval_seconds=config.scheduler.interval_minutes * 60,
        clock=clock,
    )
    timeline = TimelineBuilder(
        store,
        fetch_index=pipeline.fetch_index,
        clock=clock,
        default_index=config.timeline.default_index,
    )
    service = AirQualityService(
        cache,
        scheduler,
        timeline,
        live_ttl=timedelta(minutes=config.cache.live_ttl_minutes),
        forecast_ttl=timedelta(minutes=config.cache.forecast_ttl_minutes),
        resolve_target=fetcher.canonical,
        clock=clock,
    )
    return App(config, store, cache, pipeline, scheduler, service)

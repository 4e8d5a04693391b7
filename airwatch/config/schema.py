"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field


class CityConfig(BaseModel):
    model_config = {"extra": "forbid"}

    name: str
    slug: str
    station_id: str  # WAQI station, e.g. "@10557"
    enabled: bool = True


class UpstreamConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = "https://api.waqi.info"
    token: str = ""
    timeout_seconds: float = Field(default=15.0, gt=0.0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=2.0, ge=0.0)


class CacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    live_ttl_minutes: int = Field(default=10, ge=1)
    forecast_ttl_minutes: int = Field(default=120, ge=1)


class SchedulerConfig(BaseModel):
    model_config = {"extra": "forbid"}

    interval_minutes: int = Field(default=10, ge=1)


class PersistenceConfig(BaseModel):
    model_config = {"extra": "forbid"}

    db_path: str = "data/airwatch.db"
    dedup_window_minutes: int = Field(default=5, ge=0)


class TimelineConfig(BaseModel):
    model_config = {"extra": "forbid"}

    window_days: int = Field(default=7, ge=1, le=31)
    default_index: int = Field(default=75, ge=0)


class ForecastConfig(BaseModel):
    model_config = {"extra": "forbid"}

    max_days: int = Field(default=7, ge=1, le=14)


class AppConfig(BaseModel):
    model_config = {"extra": "forbid"}

    upstream: UpstreamConfig = UpstreamConfig()
    cache: CacheConfig = CacheConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    timeline: TimelineConfig = TimelineConfig()
    forecast: ForecastConfig = ForecastConfig()
    cities: list[CityConfig] = []

    def enabled_cities(self) -> list[CityConfig]:
        return [c for c in self.cities if c.enabled]

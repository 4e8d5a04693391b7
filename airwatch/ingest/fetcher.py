"""Fetch collaborator: resolves a target to its station and parses the feed."""

import logging

from airwatch.config.schema import CityConfig
from airwatch.errors import NotConfigured
from airwatch.ingest.payload_parser import parse_feed
from airwatch.ingest.waqi_client import WaqiClient
from airwatch.models.air_quality import RawPayload
from airwatch.models.common import TargetId, normalize_target

logger = logging.getLogger(__name__)


class AirQualityFetcher:
    def __init__(self, client: WaqiClient, cities: list[CityConfig]):
        self.client = client
        self._stations = {normalize_target(c.slug): c.station_id for c in cities}
        # Display names are aliases for the slug ("Banja Luka" -> "banja-luka").
        self._aliases = {normalize_target(c.slug): normalize_target(c.slug) for c in cities}
        for c in cities:
            self._aliases.setdefault(normalize_target(c.name), normalize_target(c.slug))

    def canonical(self, target: str) -> TargetId:
        """The configured slug for a slug or display name.

        Cache entries and persisted history are keyed by this value. Unknown
        targets come back normalized and fail later with NotConfigured.
        """
        key = normalize_target(target)
        return self._aliases.get(key, key)

    def station_for(self, target: str) -> str:
        station = self._stations.get(self.canonical(target))
        if station is None:
            raise NotConfigured(f"No upstream station configured for {target!r}", target)
        return station

    def fetch(self, target: str) -> RawPayload:
        """Fetch and parse one target's feed.

        Raises NotConfigured, FetchUnavailable or MalformedPayload.
        """
        station = self.station_for(target)
        logger.info("Fetching air quality for %s (station %s)", target, station)
        body = self.client.get_feed(station)
        payload = parse_feed(body, target)
        logger.info(
            "Fetched %s: AQI %d, dominant %s, %d forecast series",
            target, payload.index, payload.dominant_pollutant, len(payload.forecast),
        )
        return payload

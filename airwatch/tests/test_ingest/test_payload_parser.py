"""Tests for parsing WAQI feed bodies."""

import copy
import json
from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from airwatch.errors import MalformedPayload
from airwatch.ingest.payload_parser import parse_feed
from airwatch.models.common import Pollutant

FIXTURE_DIR = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def sarajevo_feed() -> dict:
    with open(FIXTURE_DIR / "waqi_feed_sarajevo.json") as f:
        return json.load(f)


class TestParseFeed:
    def test_core_fields(self, sarajevo_feed: dict):
        payload = parse_feed(sarajevo_feed, "sarajevo")
        assert payload.index == 158
        assert payload.station_name == "Sarajevo, Bosnia and Herzegovina"
        assert payload.dominant_pollutant == "pm25"
        assert payload.timestamp == datetime(2026, 3, 14, 12, 0, tzinfo=UTC)

    def test_concentrations(self, sarajevo_feed: dict):
        payload = parse_feed(sarajevo_feed)
        assert payload.concentrations[Pollutant.PM25] == 70.0
        assert payload.concentrations[Pollutant.CO] == 0.4
        assert set(payload.concentrations) == set(Pollutant)

    def test_missing_pollutant_is_none(self, sarajevo_feed: dict):
        del sarajevo_feed["data"]["iaqi"]["so2"]
        payload = parse_feed(sarajevo_feed)
        assert payload.concentrations[Pollutant.SO2] is None

    @pytest.mark.parametrize("iaqi", [[], "n/a", 42])
    def test_non_object_iaqi_gives_no_readings(self, sarajevo_feed: dict, iaqi):
        sarajevo_feed["data"]["iaqi"] = iaqi
        payload = parse_feed(sarajevo_feed)
        assert payload.index == 158
        assert all(v is None for v in payload.concentrations.values())

    def test_forecast_series(self, sarajevo_feed: dict):
        payload = parse_feed(sarajevo_feed)
        assert set(payload.forecast) == {Pollutant.PM25, Pollutant.PM10, Pollutant.O3}
        pm25 = payload.forecast[Pollutant.PM25]
        assert len(pm25) == 5
        assert pm25[0].day == date(2026, 3, 13)
        assert (pm25[0].avg, pm25[0].min, pm25[0].max) == (140.0, 98.0, 170.0)

    def test_missing_forecast_tolerated(self, sarajevo_feed: dict):
        del sarajevo_feed["data"]["forecast"]
        assert parse_feed(sarajevo_feed).forecast == {}

    def test_malformed_forecast_entry_skipped(self, sarajevo_feed: dict):
        sarajevo_feed["data"]["forecast"]["daily"]["o3"].append({"avg": 3, "day": "not-a-date"})
        payload = parse_feed(sarajevo_feed)
        assert len(payload.forecast[Pollutant.O3]) == 4

    def test_time_from_local_string(self, sarajevo_feed: dict):
        del sarajevo_feed["data"]["time"]["iso"]
        payload = parse_feed(sarajevo_feed)
        assert payload.timestamp == datetime(2026, 3, 14, 12, 0, tzinfo=UTC)

    def test_default_dominant_pollutant(self, sarajevo_feed: dict):
        del sarajevo_feed["data"]["dominentpol"]
        assert parse_feed(sarajevo_feed).dominant_pollutant == "pm25"


class TestMalformed:
    @pytest.mark.parametrize("aqi", ["-", None, "abc", True, -4, float("nan")])
    def test_bad_aqi(self, sarajevo_feed: dict, aqi):
        body = copy.deepcopy(sarajevo_feed)
        body["data"]["aqi"] = aqi
        with pytest.raises(MalformedPayload):
            parse_feed(body, "sarajevo")

    def test_numeric_string_aqi_accepted(self, sarajevo_feed: dict):
        sarajevo_feed["data"]["aqi"] = "42"
        assert parse_feed(sarajevo_feed).index == 42

    def test_missing_data(self):
        with pytest.raises(MalformedPayload):
            parse_feed({"status": "ok"})

    def test_missing_time(self, sarajevo_feed: dict):
        del sarajevo_feed["data"]["time"]
        with pytest.raises(MalformedPayload):
            parse_feed(sarajevo_feed)

    def test_unparseable_time(self, sarajevo_feed: dict):
        sarajevo_feed["data"]["time"] = {"s": "yesterday-ish"}
        with pytest.raises(MalformedPayload):
            parse_feed(sarajevo_feed)

    def test_error_carries_target(self, sarajevo_feed: dict):
        sarajevo_feed["data"]["aqi"] = "-"
        with pytest.raises(MalformedPayload) as exc_info:
            parse_feed(sarajevo_feed, "sarajevo")
        assert exc_info.value.target == "sarajevo"

"""Tests for the WAQI feed client with mocked httpx."""

import json
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
import respx

from airwatch.errors import FetchUnavailable
from airwatch.ingest.waqi_client import WaqiClient

FIXTURE_DIR = Path(__file__).parent.parent / "fixtures"
FEED_URL = "https://test-waqi.example.com/feed/@10557/"
TOKEN_PARAMS = {"token": "secret"}


@pytest.fixture
def waqi() -> WaqiClient:
    return WaqiClient(
        token="secret",
        base_url="https://test-waqi.example.com/",
        max_retries=1,
        retry_base_delay=0.01,
    )


@pytest.fixture
def sarajevo_feed() -> dict:
    with open(FIXTURE_DIR / "waqi_feed_sarajevo.json") as f:
        return json.load(f)


class TestGetFeed:
    @respx.mock
    def test_success(self, waqi: WaqiClient, sarajevo_feed: dict):
        respx.get(FEED_URL, params=TOKEN_PARAMS).mock(return_value=httpx.Response(200, json=sarajevo_feed))

        body = waqi.get_feed("@10557")
        assert body["status"] == "ok"
        assert body["data"]["aqi"] == 158

    @respx.mock
    def test_sends_token_and_user_agent(self, waqi: WaqiClient, sarajevo_feed: dict):
        route = respx.get(FEED_URL, params=TOKEN_PARAMS).mock(return_value=httpx.Response(200, json=sarajevo_feed))

        waqi.get_feed("@10557")
        request = route.calls[0].request
        assert request.url.params["token"] == "secret"
        assert "airwatch" in request.headers["user-agent"]

    @respx.mock
    def test_retry_on_503(self, waqi: WaqiClient, sarajevo_feed: dict):
        route = respx.get(FEED_URL, params=TOKEN_PARAMS).mock(
            side_effect=[
                httpx.Response(503),
                httpx.Response(200, json=sarajevo_feed),
            ]
        )

        with patch("airwatch.ingest.waqi_client.time.sleep"):
            body = waqi.get_feed("@10557")
        assert body["status"] == "ok"
        assert route.call_count == 2

    @respx.mock
    def test_retry_on_transport_error(self, waqi: WaqiClient, sarajevo_feed: dict):
        route = respx.get(FEED_URL, params=TOKEN_PARAMS).mock(
            side_effect=[
                httpx.ConnectTimeout("timed out"),
                httpx.Response(200, json=sarajevo_feed),
            ]
        )

        with patch("airwatch.ingest.waqi_client.time.sleep") as sleep:
            waqi.get_feed("@10557")
        assert route.call_count == 2
        sleep.assert_called_once_with(0.01)

    @respx.mock
    def test_exhausted_retries(self, waqi: WaqiClient):
        respx.get(FEED_URL, params=TOKEN_PARAMS).mock(return_value=httpx.Response(429))

        with patch("airwatch.ingest.waqi_client.time.sleep"), pytest.raises(FetchUnavailable) as exc_info:
            waqi.get_feed("@10557")
        assert exc_info.value.status_code == 429

    @respx.mock
    def test_transport_error_exhausted(self, waqi: WaqiClient):
        respx.get(FEED_URL, params=TOKEN_PARAMS).mock(side_effect=httpx.ConnectError("refused"))

        with patch("airwatch.ingest.waqi_client.time.sleep"), pytest.raises(FetchUnavailable):
            waqi.get_feed("@10557")

    @respx.mock
    def test_client_error_not_retried(self, waqi: WaqiClient):
        route = respx.get(FEED_URL, params=TOKEN_PARAMS).mock(return_value=httpx.Response(404))

        with pytest.raises(FetchUnavailable) as exc_info:
            waqi.get_feed("@10557")
        assert exc_info.value.status_code == 404
        assert route.call_count == 1

    @respx.mock
    def test_error_status_in_body(self, waqi: WaqiClient):
        respx.get(FEED_URL, params=TOKEN_PARAMS).mock(
            return_value=httpx.Response(200, json={"status": "error", "data": "Invalid key"})
        )

        with pytest.raises(FetchUnavailable, match="Invalid key"):
            waqi.get_feed("@10557")

    @respx.mock
    def test_non_json_body(self, waqi: WaqiClient):
        respx.get(FEED_URL, params=TOKEN_PARAMS).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(FetchUnavailable):
            waqi.get_feed("@10557")

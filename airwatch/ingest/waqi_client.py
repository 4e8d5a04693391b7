"""WAQI (aqicn.org) feed API client with retry and rate limit handling."""

import logging
import time

import httpx

from airwatch.errors import FetchUnavailable

logger = logging.getLogger(__name__)

WAQI_BASE_URL = "https://api.waqi.info"
DEFAULT_USER_AGENT = "airwatch/0.1.0"


class WaqiClient:
    def __init__(
        self,
        token: str,
        base_url: str = WAQI_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 15.0,
        max_retries: int = 3,
        retry_base_delay: float = 2.0,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    def get_feed(self, station_id: str) -> dict:
        """Fetch the live feed (with daily forecast) for one station, e.g. ``@10557``.

        Retries on 503/429 and transport errors with exponential backoff.
        Raises FetchUnavailable when retries are exhausted, on any other HTTP
        error, or when the API answers with a non-"ok" status.
        """
        url = f"{self.base_url}/feed/{station_id}/"
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        params = {"token": self.token}

        for attempt in range(self.max_retries + 1):
            try:
                resp = httpx.get(url, params=params, headers=headers, timeout=self.timeout)
            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    delay = self.retry_base_delay * (2**attempt)
                    logger.warning(
                        "WAQI request error for %s, retrying in %.1fs: %s",
                        station_id, delay, e,
                    )
                    time.sleep(delay)
                    continue
                raise FetchUnavailable(
                    f"WAQI request for {station_id} failed: {e}", station_id
                ) from e

            if resp.status_code in (503, 429) and attempt < self.max_retries:
                delay = self.retry_base_delay * (2**attempt)
                logger.warning(
                    "WAQI %s returned %d, retrying in %.1fs (attempt %d/%d)",
                    station_id, resp.status_code, delay, attempt + 1, self.max_retries,
                )
                time.sleep(delay)
                continue

            if resp.status_code >= 400:
                raise FetchUnavailable(
                    f"WAQI returned HTTP {resp.status_code} for {station_id}",
                    station_id,
                    status_code=resp.status_code,
                )

            try:
                body = resp.json()
            except ValueError as e:
                raise FetchUnavailable(
                    f"WAQI returned a non-JSON body for {station_id}", station_id
                ) from e

            status = body.get("status") if isinstance(body, dict) else None
            if status != "ok":
                detail = body.get("data") if isinstance(body, dict) else body
                raise FetchUnavailable(
                    f"WAQI returned status {status!r} for {station_id}: {detail}", station_id
                )
            return body

        raise FetchUnavailable(f"WAQI retries exhausted for {station_id}", station_id)

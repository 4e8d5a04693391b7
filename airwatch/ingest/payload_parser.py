"""Parse WAQI feed bodies into RawPayload."""

import logging
from datetime import UTC, date, datetime, timedelta, timezone

from airwatch.classify.aqi import round_half_away
from airwatch.errors import MalformedPayload
from airwatch.models.air_quality import RawPayload
from airwatch.models.common import FORECAST_POLLUTANTS, Pollutant
from airwatch.models.forecast import DayPoint

logger = logging.getLogger(__name__)


def parse_feed(body: dict, target: str | None = None) -> RawPayload:
    """Extract the fields the pipeline needs from a feed response.

    ``data.aqi`` and ``data.time`` are required. Missing pollutants and a
    missing forecast are tolerated.
    """
    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, dict):
        raise MalformedPayload("Feed body has no data object", target)

    index = _parse_index(data.get("aqi"), target)
    timestamp = _parse_time(data.get("time"), target)

    city = data.get("city") or {}
    station_name = city.get("name", "") if isinstance(city, dict) else ""

    dominant = data.get("dominentpol") or Pollutant.PM25.value

    iaqi = data.get("iaqi") or {}
    if not isinstance(iaqi, dict):
        logger.debug("Ignoring non-object iaqi %r for %s", iaqi, target)
        iaqi = {}
    concentrations: dict[Pollutant, float | None] = {
        p: _measurement_value(iaqi.get(p.value)) for p in Pollutant
    }

    return RawPayload(
        station_name=station_name,
        timestamp=timestamp,
        index=index,
        dominant_pollutant=str(dominant),
        concentrations=concentrations,
        forecast=_parse_forecast(data.get("forecast"), target),
    )


def _parse_index(raw: object, target: str | None) -> int:
    # WAQI reports "-" when a station has no current reading.
    try:
        if isinstance(raw, bool):
            raise TypeError("bool is not an AQI")
        value = round_half_away(float(raw))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedPayload(f"Unparseable AQI value {raw!r}", target) from e
    if value < 0:
        raise MalformedPayload(f"Negative AQI value {value}", target)
    return value


def _parse_time(raw: object, target: str | None) -> datetime:
    if not isinstance(raw, dict):
        raise MalformedPayload("Feed data has no time object", target)

    iso = raw.get("iso")
    if isinstance(iso, str):
        try:
            ts = datetime.fromisoformat(iso)
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=UTC)
            return ts.astimezone(UTC)
        except ValueError:
            logger.debug("Bad time.iso %r, falling back to time.s", iso)

    local = raw.get("s")
    if isinstance(local, str):
        try:
            ts = datetime.strptime(local, "%Y-%m-%d %H:%M:%S")
            return ts.replace(tzinfo=_parse_offset(raw.get("tz"))).astimezone(UTC)
        except ValueError as e:
            raise MalformedPayload(f"Unparseable time {local!r}", target) from e

    raise MalformedPayload("Feed time has neither iso nor s", target)


def _parse_offset(raw: object) -> timezone:
    if not isinstance(raw, str) or len(raw) != 6 or raw[0] not in "+-":
        return UTC
    try:
        hours, minutes = int(raw[1:3]), int(raw[4:6])
    except ValueError:
        return UTC
    offset = timedelta(hours=hours, minutes=minutes)
    return timezone(offset if raw[0] == "+" else -offset)


def _measurement_value(raw: object) -> float | None:
    if not isinstance(raw, dict):
        return None
    try:
        return float(raw["v"])
    except (KeyError, TypeError, ValueError):
        return None


def _parse_forecast(raw: object, target: str | None) -> dict[Pollutant, list[DayPoint]]:
    if not isinstance(raw, dict) or not isinstance(raw.get("daily"), dict):
        return {}

    series: dict[Pollutant, list[DayPoint]] = {}
    for pollutant in FORECAST_POLLUTANTS:
        entries = raw["daily"].get(pollutant.value)
        if not isinstance(entries, list):
            continue
        points = []
        for entry in entries:
            point = _parse_day_point(entry)
            if point is None:
                logger.debug("Skipping malformed %s forecast entry for %s: %r", pollutant, target, entry)
                continue
            points.append(point)
        if points:
            series[pollutant] = points
    return series


def _parse_day_point(entry: object) -> DayPoint | None:
    if not isinstance(entry, dict):
        return None
    try:
        day = date.fromisoformat(str(entry["day"]))
    except (KeyError, ValueError):
        return None
    return DayPoint(
        day=day,
        avg=_optional_float(entry.get("avg")),
        min=_optional_float(entry.get("min")),
        max=_optional_float(entry.get("max")),
    )


def _optional_float(raw: object) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None

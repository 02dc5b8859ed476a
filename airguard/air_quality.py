"""Open-Meteo air-quality client.

Fetches the current pollutant snapshot and a one-day hourly PM2.5/PM10
series for a coordinate in a single request:

    GET /v1/air-quality?latitude=..&longitude=..&current=..&hourly=..

No API key is required.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import httpx
from loguru import logger

from airguard import config


CURRENT_FIELDS = "us_aqi,pm10,pm2_5,nitrogen_dioxide,ozone,sulphur_dioxide"
HOURLY_FIELDS = "pm10,pm2_5"


class AirQualityAPIError(Exception):
    """Raised when the air-quality API returns an error or unexpected response."""


@dataclass(frozen=True)
class AirQualityReading:
    """A point-in-time pollutant snapshot.

    Attributes:
        aqi: US Air Quality Index.
        pm25: PM2.5 concentration (ug/m3).
        pm10: PM10 concentration (ug/m3).
        no2: Nitrogen dioxide (ug/m3).
        o3: Ozone (ug/m3).
        so2: Sulphur dioxide (ug/m3).
    """

    aqi: float = 0
    pm25: float = 0
    pm10: float = 0
    no2: float = 0
    o3: float = 0
    so2: float = 0


@dataclass(frozen=True)
class HourlySeries:
    """Parallel hourly arrays for a single day.

    Attributes:
        time: ISO 8601 local timestamps.
        pm10: PM10 value for each timestamp.
        pm2_5: PM2.5 value for each timestamp.
    """

    time: list[str] = field(default_factory=list)
    pm10: list[float] = field(default_factory=list)
    pm2_5: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.time)


@dataclass(frozen=True)
class AirQualityReport:
    """Complete response for one coordinate."""

    latitude: float
    longitude: float
    current: AirQualityReading
    hourly: HourlySeries = field(default_factory=HourlySeries)


def _create_client() -> httpx.Client:
    """Create an httpx client configured for the air-quality API."""
    return httpx.Client(
        headers={"Accept": "application/json"},
        timeout=config.HTTP_TIMEOUT,
    )


def _request_with_retry(
    client: httpx.Client,
    url: str,
    params: dict,
    max_retries: int | None = None,
) -> dict:
    """Make a GET request, retrying server errors.

    Raises:
        AirQualityAPIError: On HTTP errors, timeouts, or invalid JSON.
    """
    if max_retries is None:
        max_retries = config.HTTP_MAX_RETRIES

    last_error = None
    for attempt in range(max_retries + 1):
        try:
            response = client.get(url, params=params)
        except httpx.TimeoutException:
            raise AirQualityAPIError("Request to the air-quality API timed out. Please try again.")
        except httpx.HTTPError as exc:
            raise AirQualityAPIError(f"HTTP error communicating with the air-quality API: {exc}")

        if response.status_code >= 500:
            last_error = AirQualityAPIError(
                f"Weather API Error: {response.reason_phrase} (HTTP {response.status_code})"
            )
            if attempt < max_retries:
                logger.warning(
                    "Air-quality API returned {}, retrying ({}/{})",
                    response.status_code, attempt + 1, max_retries,
                )
                time.sleep(config.HTTP_RETRY_DELAY)
                continue
            raise last_error

        if not response.is_success:
            raise AirQualityAPIError(
                f"Weather API Error: {response.reason_phrase} (HTTP {response.status_code})"
            )

        try:
            return response.json()
        except ValueError:
            raise AirQualityAPIError("Received invalid JSON from the air-quality API.")

    raise last_error  # pragma: no cover


def _non_negative(value) -> float:
    """Coerce a raw reading to a non-negative number (None counts as 0)."""
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    number = max(number, 0)
    return int(number) if number.is_integer() else number


def _parse_current(data: dict) -> AirQualityReading:
    """Parse the ``current`` block of the response."""
    current = data.get("current")
    if not isinstance(current, dict):
        raise AirQualityAPIError("Unexpected response format: missing current readings.")

    return AirQualityReading(
        aqi=_non_negative(current.get("us_aqi")),
        pm25=_non_negative(current.get("pm2_5")),
        pm10=_non_negative(current.get("pm10")),
        no2=_non_negative(current.get("nitrogen_dioxide")),
        o3=_non_negative(current.get("ozone")),
        so2=_non_negative(current.get("sulphur_dioxide")),
    )


def _parse_hourly(data: dict) -> HourlySeries:
    """Parse the ``hourly`` block, checking that the arrays line up."""
    hourly = data.get("hourly")
    if not hourly:
        return HourlySeries()

    try:
        times = list(hourly.get("time") or [])
        pm10 = [_non_negative(v) for v in hourly.get("pm10") or []]
        pm2_5 = [_non_negative(v) for v in hourly.get("pm2_5") or []]
    except (AttributeError, TypeError):
        raise AirQualityAPIError("Unexpected hourly response format.")

    if not len(times) == len(pm10) == len(pm2_5):
        raise AirQualityAPIError(
            "Hourly series length mismatch "
            f"(time={len(times)}, pm10={len(pm10)}, pm2_5={len(pm2_5)})."
        )
    return HourlySeries(time=times, pm10=pm10, pm2_5=pm2_5)


def fetch_air_quality(latitude: float, longitude: float) -> AirQualityReport:
    """Fetch current and hourly air quality for the given coordinates.

    Args:
        latitude: Decimal latitude.
        longitude: Decimal longitude.

    Returns:
        AirQualityReport with the current reading and today's hourly series.

    Raises:
        AirQualityAPIError: On API communication errors or malformed data.
    """
    params = {
        "latitude": str(latitude),
        "longitude": str(longitude),
        "current": CURRENT_FIELDS,
        "hourly": HOURLY_FIELDS,
        "timezone": "auto",
        "forecast_days": "1",
    }

    client = _create_client()
    try:
        data = _request_with_retry(client, config.AIR_QUALITY_API_URL, params)
    except AirQualityAPIError as exc:
        logger.error("Failed to fetch AQI data for {},{}: {}", latitude, longitude, exc)
        raise
    finally:
        client.close()

    if not isinstance(data, dict):
        raise AirQualityAPIError("Unexpected response format from the air-quality API.")

    return AirQualityReport(
        latitude=data.get("latitude", latitude),
        longitude=data.get("longitude", longitude),
        current=_parse_current(data),
        hourly=_parse_hourly(data),
    )


def reading_to_dict(reading: AirQualityReading) -> dict:
    """Render a reading with the API's own field names."""
    return {
        "us_aqi": reading.aqi,
        "pm2_5": reading.pm25,
        "pm10": reading.pm10,
        "nitrogen_dioxide": reading.no2,
        "ozone": reading.o3,
        "sulphur_dioxide": reading.so2,
    }

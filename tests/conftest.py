"""Shared test fixtures for Open-Meteo response data."""

import pytest

from airguard.air_quality import AirQualityReading


@pytest.fixture()
def air_quality_response():
    """Sample Open-Meteo air-quality response for London."""
    return {
        "latitude": 51.5,
        "longitude": -0.120000124,
        "timezone": "Europe/London",
        "current": {
            "time": "2026-10-19T10:00",
            "interval": 3600,
            "us_aqi": 42,
            "pm10": 14.2,
            "pm2_5": 8.1,
            "nitrogen_dioxide": 21.5,
            "ozone": 48.0,
            "sulphur_dioxide": 2.3,
        },
        "hourly": {
            "time": [
                "2026-10-19T00:00",
                "2026-10-19T01:00",
                "2026-10-19T02:00",
            ],
            "pm10": [12.0, 13.5, 15.1],
            "pm2_5": [7.2, 7.9, 9.4],
        },
    }


@pytest.fixture()
def geocoding_response():
    """Sample Open-Meteo geocoding response for Tokyo."""
    return {
        "results": [
            {
                "id": 1850147,
                "name": "Tokyo",
                "latitude": 35.6895,
                "longitude": 139.69171,
                "country_code": "JP",
                "country": "Japan",
                "timezone": "Asia/Tokyo",
            }
        ],
        "generationtime_ms": 0.6,
    }


@pytest.fixture()
def sample_reading():
    return AirQualityReading(aqi=42, pm25=8.1, pm10=14.2, no2=21.5, o3=48.0, so2=2.3)

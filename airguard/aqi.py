"""US EPA AQI bands and the colors the dashboard uses for them."""

from __future__ import annotations

from dataclasses import dataclass

from airguard import config


@dataclass(frozen=True)
class AQICategory:
    """A named AQI band.

    Attributes:
        label: EPA category name (e.g., "Moderate").
        color: CSS color for the gauge and badges.
        upper: Inclusive upper AQI bound of the band.
    """

    label: str
    color: str
    upper: float


AQI_CATEGORIES: tuple[AQICategory, ...] = (
    AQICategory("Good", "#10b981", 50),                              # emerald
    AQICategory("Moderate", "#eab308", 100),                         # yellow
    AQICategory("Unhealthy for Sensitive Groups", "#f97316", 150),   # orange
    AQICategory("Unhealthy", "#ef4444", 200),                        # red
    AQICategory("Very Unhealthy", "#a855f7", 300),                   # purple
    AQICategory("Hazardous", "#881337", 500),                        # rose-900
)


def aqi_category(aqi: float) -> AQICategory:
    """Return the EPA category for an AQI value (anything above 300 is Hazardous)."""
    for category in AQI_CATEGORIES[:-1]:
        if aqi <= category.upper:
            return category
    return AQI_CATEGORIES[-1]


def is_unhealthy(aqi: float, threshold: float | None = None) -> bool:
    """Whether an AQI value is above the alert threshold."""
    if threshold is None:
        threshold = config.AQI_ALERT_THRESHOLD
    return aqi > threshold

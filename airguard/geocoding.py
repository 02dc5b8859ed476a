"""Geocoding module for resolving place names to coordinates.

Uses a two-tier approach:
1. Open-Meteo geocoding API (fast, no key, worldwide city names)
2. Nominatim geocoder via geopy (handles addresses and odd spellings)

Also provides the best-effort helpers used to locate and name the
user on page load: reading the browser position, IP-based geolocation
and reverse geocoding.
"""

from __future__ import annotations

from dataclasses import dataclass

import geocoder
import httpx
from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim
from loguru import logger

from airguard import config


class GeocodingError(Exception):
    """Raised when a location cannot be resolved to coordinates."""


@dataclass(frozen=True)
class GeoLocation:
    """A resolved geographic location with coordinates.

    Attributes:
        latitude: Decimal latitude.
        longitude: Decimal longitude.
        display_name: Human-readable location name.
    """

    latitude: float
    longitude: float
    display_name: str


def _format_name(result: dict) -> str:
    """Build "<name>, <country>" from an Open-Meteo result."""
    name = result.get("name", "")
    country = result.get("country")
    return f"{name}, {country}" if country else name


def _geocode_open_meteo(query: str) -> GeoLocation | None:
    """Try the Open-Meteo geocoding API. Returns None on failure instead of raising."""
    params = {
        "name": query,
        "count": "1",
        "language": "en",
        "format": "json",
    }
    try:
        response = httpx.get(config.GEOCODING_API_URL, params=params, timeout=config.HTTP_TIMEOUT)
        if response.status_code != 200:
            logger.warning("Geocoding API returned HTTP {} for {!r}", response.status_code, query)
            return None

        results = response.json().get("results") or []
        if not results:
            return None

        first = results[0]
        return GeoLocation(
            latitude=float(first["latitude"]),
            longitude=float(first["longitude"]),
            display_name=_format_name(first),
        )
    except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.error("Geocoding error for {!r}: {}", query, exc)
    return None


def _nominatim() -> Nominatim:
    return Nominatim(
        user_agent=config.NOMINATIM_USER_AGENT,
        timeout=config.NOMINATIM_TIMEOUT,
    )


def _geocode_nominatim(query: str) -> GeoLocation | None:
    """Try geocoding with Nominatim. Returns None on failure instead of raising."""
    try:
        result = _nominatim().geocode(query, exactly_one=True, language="en")
        if result is not None:
            return GeoLocation(
                latitude=result.latitude,
                longitude=result.longitude,
                display_name=result.address,
            )
    except (GeocoderTimedOut, GeocoderServiceError) as exc:
        logger.warning("Nominatim lookup failed for {!r}: {}", query, exc)
    return None


def get_coordinates_for_city(city_name: str) -> GeoLocation | None:
    """Resolve a free-text place name to coordinates.

    Args:
        city_name: A city name, optionally with region or country.

    Returns:
        GeoLocation of the best match, or None if nothing matched or
        every geocoder failed.
    """
    query = (city_name or "").strip()
    if not query:
        return None

    result = _geocode_open_meteo(query)
    if result is not None:
        return result

    return _geocode_nominatim(query)


def geocode_location(query: str) -> GeoLocation:
    """Convert a user-provided location string to coordinates.

    Args:
        query: A place name (city, "city, country", or address).

    Returns:
        GeoLocation with latitude, longitude, and display name.

    Raises:
        GeocodingError: If the query is blank or cannot be resolved.
    """
    query = query.strip()
    if not query:
        raise GeocodingError("Please enter a location.")

    result = get_coordinates_for_city(query)
    if result is None:
        raise GeocodingError(
            "Could not find that location. "
            "Try a different format (e.g., 'Tokyo' or 'Paris, France')."
        )
    return result


def reverse_geocode(latitude: float, longitude: float) -> str | None:
    """Look up a short place name for coordinates, or None on failure."""
    try:
        result = _nominatim().reverse((latitude, longitude), exactly_one=True, language="en", zoom=10)
    except (GeocoderTimedOut, GeocoderServiceError) as exc:
        logger.warning("Reverse geocoding failed for {},{}: {}", latitude, longitude, exc)
        return None

    if result is None:
        return None

    address = result.raw.get("address", {}) if isinstance(result.raw, dict) else {}
    city = (
        address.get("city")
        or address.get("town")
        or address.get("village")
        or address.get("county")
    )
    country = address.get("country")
    if city and country:
        return f"{city}, {country}"
    return city or result.address


def detect_current_location() -> GeoLocation | None:
    """Approximate a location from the public IP of this process.

    This runs server-side, so once deployed it finds the host rather
    than the visitor. It only backs up the browser position. Returns
    None when the lookup fails; callers fall back to the configured
    default location.
    """
    try:
        g = geocoder.ip("me")
    except Exception as exc:
        # geocoder surfaces requests errors of many kinds
        logger.warning("Geolocation denied/failed, using default: {}", exc)
        return None

    if not g.ok or g.lat is None or g.lng is None:
        logger.warning("Geolocation denied/failed, using default.")
        return None

    parts = [p for p in (g.city, g.country) if p]
    name = ", ".join(parts) if parts else "Current Location"
    return GeoLocation(latitude=float(g.lat), longitude=float(g.lng), display_name=name)


def browser_position(payload) -> GeoLocation | None:
    """Read a browser Geolocation API result into a GeoLocation.

    ``payload`` is what the page sent back for
    ``navigator.geolocation.getCurrentPosition``: a dict with a ``coords``
    block on success, or an ``error`` block when the user denied access.
    Returns None for errors and anything malformed. The name is left as
    "Current Location" for the caller to reverse geocode.
    """
    if not isinstance(payload, dict):
        return None
    if "error" in payload:
        logger.warning("Browser geolocation failed: {}", payload["error"])
        return None

    coords = payload.get("coords")
    if not isinstance(coords, dict):
        return None
    try:
        latitude = float(coords["latitude"])
        longitude = float(coords["longitude"])
    except (KeyError, TypeError, ValueError):
        return None
    return GeoLocation(latitude=latitude, longitude=longitude, display_name="Current Location")

"""Centralized configuration loaded from environment variables.

All settings are read from environment variables with sensible defaults.
Also checks Streamlit secrets (st.secrets) for Streamlit Cloud deployments.
"""

import os


def get_anthropic_api_key() -> str:
    """Get the Anthropic API key lazily so st.secrets is ready.

    Must be called at runtime (not import time) because Streamlit
    Cloud only makes st.secrets available after the app starts.
    """
    try:
        import streamlit as st
        if hasattr(st, "secrets") and "ANTHROPIC_API_KEY" in st.secrets:
            return str(st.secrets["ANTHROPIC_API_KEY"])
    except Exception:
        # st.secrets raises when no secrets.toml exists
        pass
    return os.environ.get("ANTHROPIC_API_KEY", "")


def _get_int(key: str, default: int) -> int:
    """Read an integer environment variable with a default."""
    return int(os.environ.get(key, str(default)))


def _get_float(key: str, default: float) -> float:
    """Read a float environment variable with a default."""
    return float(os.environ.get(key, str(default)))


# Open-Meteo (no key required)
AIR_QUALITY_API_URL: str = os.environ.get(
    "AIR_QUALITY_API_URL", "https://air-quality-api.open-meteo.com/v1/air-quality"
)
GEOCODING_API_URL: str = os.environ.get(
    "GEOCODING_API_URL", "https://geocoding-api.open-meteo.com/v1/search"
)
HTTP_TIMEOUT: int = _get_int("HTTP_TIMEOUT", 15)
HTTP_MAX_RETRIES: int = _get_int("HTTP_MAX_RETRIES", 1)
HTTP_RETRY_DELAY: float = _get_float("HTTP_RETRY_DELAY", 2.0)

# Geocoding fallback (Nominatim)
NOMINATIM_USER_AGENT: str = os.environ.get("NOMINATIM_USER_AGENT", "airguard-dashboard")
NOMINATIM_TIMEOUT: int = _get_int("NOMINATIM_TIMEOUT", 10)

# Anthropic API: model and limits from env vars, key is read lazily
ANTHROPIC_MODEL: str = os.environ.get("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
CHAT_MAX_TOKENS: int = _get_int("CHAT_MAX_TOKENS", 1024)
CHAT_MAX_TOOL_ROUNDS: int = _get_int("CHAT_MAX_TOOL_ROUNDS", 5)
ADVICE_MAX_TOKENS: int = _get_int("ADVICE_MAX_TOKENS", 1024)

# Alerts
AQI_ALERT_THRESHOLD: int = _get_int("AQI_ALERT_THRESHOLD", 100)

# Rerun interval that keeps the "Updated N minutes ago" label moving (0 disables)
CLOCK_REFRESH_SECONDS: int = _get_int("CLOCK_REFRESH_SECONDS", 60)

# Fallback location when the user cannot be located
DEFAULT_LATITUDE: float = _get_float("DEFAULT_LATITUDE", 51.5074)
DEFAULT_LONGITUDE: float = _get_float("DEFAULT_LONGITUDE", -0.1278)
DEFAULT_LOCATION_NAME: str = os.environ.get("DEFAULT_LOCATION_NAME", "London, UK")

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

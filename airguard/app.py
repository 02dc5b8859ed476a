"""AirGuard AI: Streamlit air-quality dashboard.

Run with: streamlit run airguard/app.py

Locates the user, shows live AQI with a gauge, pollutant cards and an
hourly PM chart, asks Claude for health tips, and offers a chat panel
that can look up the air in any city. Optional desktop alerts fire when
the AQI crosses the configured threshold.
"""

from __future__ import annotations

import html
from datetime import datetime

import streamlit as st
import streamlit.components.v1 as components
from loguru import logger
from streamlit_autorefresh import st_autorefresh
from streamlit_js_eval import get_geolocation

from airguard import config
from airguard.advisor import HealthTip, get_health_advice
from airguard.air_quality import AirQualityAPIError, AirQualityReading, AirQualityReport, fetch_air_quality
from airguard.aqi import aqi_category
from airguard.charts import build_aqi_gauge, build_pollutant_chart
from airguard.chat import SUGGESTIONS, ChatBusyError, ChatError, ChatSession, build_context, create_chat_session
from airguard.eco_tips import DID_YOU_KNOW, INTRO, tips_for
from airguard.geocoding import (
    GeocodingError,
    GeoLocation,
    browser_position,
    detect_current_location,
    geocode_location,
    reverse_geocode,
)
from airguard.logger import setup_logging
from airguard.notifications import AlertMonitor, Notification, notification_script


_TIP_ICONS: dict[str, str] = {
    "mask": "\U0001f637",
    "window": "\U0001fa9f",
    "exercise": "\U0001f3c3",
    "generic": "\U0001f6e1️",
}


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def format_time_ago(last_updated: datetime | None, now: datetime | None = None) -> str:
    """Render the "Updated N minutes ago" label."""
    if last_updated is None:
        return "Updated just now"
    now = now or datetime.now()
    minutes = int((now - last_updated).total_seconds() // 60)
    if minutes <= 0:
        return "Updated just now"
    if minutes == 1:
        return "Updated 1 minute ago"
    return f"Updated {minutes} minutes ago"


def _schedule_clock_refresh() -> None:
    """Rerun the page periodically so the "Updated" label keeps moving."""
    if config.CLOCK_REFRESH_SECONDS > 0:
        st_autorefresh(interval=config.CLOCK_REFRESH_SECONDS * 1000, key="clock_autorefresh")


def _default_location() -> GeoLocation:
    return GeoLocation(
        latitude=config.DEFAULT_LATITUDE,
        longitude=config.DEFAULT_LONGITUDE,
        display_name=config.DEFAULT_LOCATION_NAME,
    )


# ---------------------------------------------------------------------------
# CSS injection
# ---------------------------------------------------------------------------

def _inject_css() -> None:
    """Inject card, badge and chat bubble styles."""
    st.markdown("""
    <style>
    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
    .block-container {
        padding-top: 1.5rem !important;
        max-width: 1000px !important;
    }

    .aq-card {
        background: #ffffff;
        border: 1px solid #e2e8f0;
        border-radius: 16px;
        padding: 16px;
        margin-bottom: 12px;
    }
    .aq-label {
        font-size: 0.75rem;
        text-transform: uppercase;
        letter-spacing: 0.5px;
        color: #64748b;
        font-weight: 600;
    }
    .aq-value {
        font-size: 1.6rem;
        font-weight: 600;
        color: #0f172a;
    }
    .aq-unit {
        font-size: 0.75rem;
        color: #94a3b8;
    }
    .aq-badge {
        display: inline-block;
        border-radius: 999px;
        padding: 4px 12px;
        color: #ffffff;
        font-weight: 600;
        font-size: 0.85rem;
    }

    .tip-card {
        background: #f8fafc;
        border: 1px solid #e2e8f0;
        border-radius: 14px;
        padding: 12px 14px;
        margin-bottom: 10px;
    }
    .tip-title { font-weight: 600; color: #0f172a; }
    .tip-desc { font-size: 0.9rem; color: #475569; }

    .eco-fact {
        background: #ecfdf5;
        border: 1px solid #d1fae5;
        border-radius: 16px;
        padding: 16px;
        color: #047857;
    }

    .chat-user {
        background: #4f46e5;
        border-radius: 16px 16px 4px 16px;
        padding: 10px 14px;
        margin: 6px 0 6px 15%;
        color: #ffffff;
        font-size: 0.9rem;
    }
    .chat-model {
        background: #ffffff;
        border: 1px solid #f1f5f9;
        border-radius: 16px 16px 16px 4px;
        padding: 10px 14px;
        margin: 6px 15% 6px 0;
        color: #334155;
        font-size: 0.9rem;
    }
    </style>
    """, unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

@st.cache_data(ttl=3600, show_spinner=False)
def _cached_detect_location() -> dict | None:
    """Locate the server by IP (cached for 1 hour)."""
    loc = detect_current_location()
    if loc is None:
        return None
    name = loc.display_name
    if name == "Current Location":
        name = reverse_geocode(loc.latitude, loc.longitude) or name
    return {"lat": loc.latitude, "lon": loc.longitude, "name": name}


@st.cache_data(ttl=3600, show_spinner=False)
def _cached_reverse_geocode(latitude: float, longitude: float) -> str | None:
    return reverse_geocode(latitude, longitude)


def _fallback_location() -> None:
    """Use the IP location, or the configured default when that fails."""
    detected = _cached_detect_location()
    if detected:
        st.session_state.location = GeoLocation(
            latitude=detected["lat"],
            longitude=detected["lon"],
            display_name=detected["name"],
        )
        st.session_state.location_source = "ip"
    else:
        st.session_state.location = _default_location()
        st.session_state.location_source = "default"


def _request_browser_location() -> None:
    """Ask the page for navigator.geolocation on the next render."""
    st.session_state.geo_request += 1
    st.session_state.geo_pending = True


def _resolve_browser_location() -> None:
    """Switch to the browser position once the page reports it.

    Until the visitor answers the permission prompt the component returns
    None and the fallback location stays on screen.
    """
    if not st.session_state.geo_pending:
        return
    payload = get_geolocation(component_key=f"geolocation_{st.session_state.geo_request}")
    if payload is None:
        return

    st.session_state.geo_pending = False
    loc = browser_position(payload)
    if loc is None:
        if st.session_state.geo_request > 1:
            st.sidebar.warning("Could not get your browser location, showing an approximate one.")
            _fallback_location()
        return

    name = _cached_reverse_geocode(round(loc.latitude, 4), round(loc.longitude, 4))
    st.session_state.location = GeoLocation(
        latitude=loc.latitude,
        longitude=loc.longitude,
        display_name=name or loc.display_name,
    )
    st.session_state.location_source = "browser"
    logger.info("Using browser location {:.4f},{:.4f}", loc.latitude, loc.longitude)


def _init_state() -> None:
    """Initialize session state on first run."""
    if "location" not in st.session_state:
        _fallback_location()
        st.session_state.geo_request = 1
        st.session_state.geo_pending = True
    if "pending_notification" not in st.session_state:
        st.session_state.pending_notification = None
    if "report" not in st.session_state:
        st.session_state.report = None
        st.session_state.report_location = None
        st.session_state.last_updated = None
        st.session_state.load_error = None
    if "alert_monitor" not in st.session_state:
        st.session_state.alert_monitor = AlertMonitor()
    if "chat_session" not in st.session_state:
        st.session_state.chat_session = None
        st.session_state.chat_context_key = None
        st.session_state.chat_error = None


def _load_data(location: GeoLocation) -> None:
    """Fetch fresh readings for a location into session state."""
    monitor: AlertMonitor = st.session_state.alert_monitor
    monitor.reset()
    st.session_state.load_error = None
    try:
        with st.spinner("Fetching air quality..."):
            st.session_state.report = fetch_air_quality(location.latitude, location.longitude)
        st.session_state.last_updated = datetime.now()
    except AirQualityAPIError as exc:
        logger.error("Dashboard load failed: {}", exc)
        st.session_state.report = None
        st.session_state.load_error = "Failed to load air quality data."
    st.session_state.report_location = location


def _current_reading() -> AirQualityReading:
    report: AirQualityReport | None = st.session_state.report
    return report.current if report else AirQualityReading()


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

def _show_notification(notification: Notification) -> None:
    """Show an in-app toast and a browser desktop notification."""
    st.toast(f"**{notification.title}**  \n{notification.body}")
    components.html(notification_script(notification), height=0)


def _flush_pending_notification() -> None:
    """Show a notification queued by the previous run."""
    pending: Notification | None = st.session_state.pending_notification
    if pending is not None:
        st.session_state.pending_notification = None
        _show_notification(pending)


def _check_alert(reading: AirQualityReading) -> None:
    monitor: AlertMonitor = st.session_state.alert_monitor
    notification = monitor.check(reading.aqi)
    if notification is not None:
        logger.info("AQI {} above threshold {}, alerting", reading.aqi, monitor.threshold)
        _show_notification(notification)


# ---------------------------------------------------------------------------
# Render: Sidebar
# ---------------------------------------------------------------------------

def _render_sidebar() -> None:
    """Location search, refresh and notification controls."""
    with st.sidebar:
        st.markdown("### \U0001f30d Location")
        st.text_input(
            "Search for a city",
            placeholder="e.g., Tokyo  or  Paris, France",
            key="search_input",
        )
        if st.button("Show air quality", key="search_btn", use_container_width=True):
            query = st.session_state.get("search_input", "")
            try:
                st.session_state.location = geocode_location(query)
                st.session_state.location_source = "search"
                st.session_state.geo_pending = False
            except GeocodingError as exc:
                st.error(str(exc))

        if st.button("\U0001f4cd Use my location", key="locate_btn", use_container_width=True):
            _request_browser_location()
            st.rerun()

        if st.session_state.location_source == "ip":
            st.caption(
                "Approximate location from the server's IP address. "
                "Allow location access in your browser for your own area."
            )
        elif st.session_state.location_source == "default":
            st.caption("Showing the default location.")

        st.markdown("---")
        if st.button("\U0001f504 Refresh", key="refresh_btn", use_container_width=True):
            _load_data(st.session_state.location)

        monitor: AlertMonitor = st.session_state.alert_monitor
        label = "\U0001f514 Disable alerts" if monitor.enabled else "\U0001f515 Enable alerts"
        if st.button(label, key="alerts_btn", use_container_width=True):
            # st.rerun() drops components rendered in this run, so show it on the next one
            st.session_state.pending_notification = monitor.toggle()
            st.rerun()
        if monitor.enabled:
            st.caption(f"Alerting when AQI exceeds {monitor.threshold:g}.")


# ---------------------------------------------------------------------------
# Render: Live overview
# ---------------------------------------------------------------------------

def _pollutant_card(label: str, value: float, unit: str) -> str:
    return (
        f'<div class="aq-card">'
        f'<div class="aq-label">{label}</div>'
        f'<div class="aq-value">{value:g}</div>'
        f'<div class="aq-unit">{unit}</div>'
        f'</div>'
    )


def _render_overview(reading: AirQualityReading) -> None:
    """Gauge, category badge and pollutant grid."""
    head, updated = st.columns([3, 1])
    head.markdown("## Live Overview")
    updated.caption(format_time_ago(st.session_state.last_updated))

    category = aqi_category(reading.aqi)
    gauge_col, info_col = st.columns([1, 1])
    with gauge_col:
        st.plotly_chart(build_aqi_gauge(reading.aqi), use_container_width=True)
    with info_col:
        st.markdown(
            f'<div class="aq-card">'
            f'<div class="aq-label">US AQI</div>'
            f'<div class="aq-value">{reading.aqi:g}</div>'
            f'<span class="aq-badge" style="background:{category.color}">{category.label}</span>'
            f'<p class="aq-unit" style="margin-top:8px">'
            f'Based on current particulate matter (PM2.5 &amp; PM10) readings.</p>'
            f'</div>',
            unsafe_allow_html=True,
        )

    cards = [
        ("PM2.5", reading.pm25, "µg/m³"),
        ("PM10", reading.pm10, "µg/m³"),
        ("NO₂", reading.no2, "µg/m³"),
        ("O₃", reading.o3, "µg/m³"),
    ]
    for col, (label, value, unit) in zip(st.columns(len(cards)), cards):
        col.markdown(_pollutant_card(label, value, unit), unsafe_allow_html=True)


def _render_chart(report: AirQualityReport) -> None:
    if not len(report.hourly):
        return
    st.markdown("#### Pollutant trends (24h)")
    st.plotly_chart(build_pollutant_chart(report.hourly), use_container_width=True)


# ---------------------------------------------------------------------------
# Render: AI health advisor
# ---------------------------------------------------------------------------

def _advice_for(reading: AirQualityReading) -> list[HealthTip]:
    """Health tips for the current snapshot, requested once per AQI value."""
    if st.session_state.get("advice_aqi") != reading.aqi:
        with st.spinner("Generating health tips..."):
            st.session_state.advice = get_health_advice(reading)
        st.session_state.advice_aqi = reading.aqi
    return st.session_state.advice


def _render_advisor(reading: AirQualityReading) -> None:
    st.markdown("### AI Health Advisor")
    if reading.aqi <= 0:
        st.caption("Waiting for air quality data...")
    elif not config.get_anthropic_api_key():
        st.info("Add ANTHROPIC_API_KEY to get personalised health tips.")
    else:
        for tip in _advice_for(reading):
            icon = _TIP_ICONS.get(tip.icon, _TIP_ICONS["generic"])
            st.markdown(
                f'<div class="tip-card">'
                f'<div class="tip-title">{icon} {html.escape(tip.title)}</div>'
                f'<div class="tip-desc">{html.escape(tip.description)}</div>'
                f'</div>',
                unsafe_allow_html=True,
            )

    st.markdown(
        f'<div class="eco-fact"><strong>Did you know?</strong><br>{DID_YOU_KNOW}</div>',
        unsafe_allow_html=True,
    )


def _render_eco_tips() -> None:
    st.markdown("### \U0001f331 Eco actions")
    st.caption(INTRO)
    mine, community = st.tabs(["My Actions", "Community"])
    for tab, audience in ((mine, "individual"), (community, "community")):
        with tab:
            for tip in tips_for(audience):
                st.markdown(f"**{tip.title}**: {tip.description}")


# ---------------------------------------------------------------------------
# Render: Chat
# ---------------------------------------------------------------------------

def _ensure_chat_session(location: GeoLocation, reading: AirQualityReading) -> ChatSession | None:
    """Create the chat session, or hand it new context when the dashboard changes.

    The visible transcript lives for the whole browser session.
    """
    key = (location.display_name, location.latitude, location.longitude, reading)
    session: ChatSession | None = st.session_state.chat_session
    if session is not None and st.session_state.chat_context_key == key:
        return session

    context = build_context(location.display_name, location.latitude, location.longitude, reading)
    if session is not None:
        session.update_context(context)
        st.session_state.chat_context_key = key
        return session

    try:
        st.session_state.chat_session = create_chat_session(context)
        st.session_state.chat_error = None
    except ChatError as exc:
        st.session_state.chat_session = None
        st.session_state.chat_error = str(exc)
    st.session_state.chat_context_key = key
    return st.session_state.chat_session


def _send_chat(text: str) -> None:
    session: ChatSession | None = st.session_state.chat_session
    if session is None or not text.strip():
        return
    try:
        session.send_message(text)
    except ChatBusyError:
        st.toast("Still thinking about your last question...")


def _on_chat_submit() -> None:
    text = st.session_state.get("chat_input", "")
    st.session_state.chat_input = ""
    _send_chat(text)


def _render_chat(location: GeoLocation, reading: AirQualityReading) -> None:
    """AirGuard assistant panel."""
    st.markdown("### \U0001f916 AirGuard Assistant")
    st.caption("Global Air Expert")

    session = _ensure_chat_session(location, reading)
    if session is None:
        st.warning(
            "Chat is not enabled. Add ANTHROPIC_API_KEY in "
            "Streamlit app Settings → Secrets to ask questions."
        )
        return

    for msg in session.messages:
        css = "chat-user" if msg.role == "user" else "chat-model"
        st.markdown(
            f'<div class="{css}">{html.escape(msg.text)}</div>',
            unsafe_allow_html=True,
        )

    if session.show_suggestions:
        for col, suggestion in zip(st.columns(len(SUGGESTIONS)), SUGGESTIONS):
            if col.button(suggestion, key=f"suggest_{suggestion}", use_container_width=True):
                with st.spinner("Analyzing..."):
                    _send_chat(suggestion)
                st.rerun()

    st.text_input(
        "Ask about any city...",
        key="chat_input",
        placeholder="Ask about any city...",
        on_change=_on_chat_submit,
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    """Main Streamlit application entry point."""
    setup_logging()
    st.set_page_config(
        page_title="AirGuard AI",
        page_icon="\U0001f33f",
        layout="wide",
    )
    _schedule_clock_refresh()
    _inject_css()
    _init_state()
    _resolve_browser_location()
    _render_sidebar()

    _flush_pending_notification()

    location: GeoLocation = st.session_state.location
    if st.session_state.report_location != location:
        _load_data(location)

    st.title("AirGuard AI")
    st.caption(f"\U0001f4cd {location.display_name}")

    if st.session_state.load_error:
        st.error(st.session_state.load_error)

    reading = _current_reading()
    report: AirQualityReport | None = st.session_state.report

    _render_overview(reading)
    if report is not None:
        _render_chart(report)
        _check_alert(reading)

    st.markdown("---")
    _render_advisor(reading)
    st.markdown("---")
    _render_eco_tips()
    st.markdown("---")
    _render_chat(location, reading)

    st.caption("Powered by Open-Meteo & Anthropic Claude.")


if __name__ == "__main__":
    main()

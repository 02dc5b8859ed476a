"""Tests for the dashboard: charts, eco tips, labels and page state."""

from dataclasses import replace
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import plotly.graph_objects as go
import pytest

from airguard.air_quality import HourlySeries
from airguard.app import (
    _ensure_chat_session,
    _flush_pending_notification,
    _resolve_browser_location,
    _schedule_clock_refresh,
    format_time_ago,
)
from airguard.charts import build_aqi_gauge, build_pollutant_chart, hourly_chart_points
from airguard.chat import ChatSession
from airguard.eco_tips import COMMUNITY_TIPS, DID_YOU_KNOW, INDIVIDUAL_TIPS, tips_for
from airguard.geocoding import GeoLocation
from airguard.notifications import AlertMonitor


def _series(hours):
    return HourlySeries(
        time=[f"2026-10-19T{h:02d}:00" for h in range(hours)],
        pm10=[float(h) for h in range(hours)],
        pm2_5=[h / 2 for h in range(hours)],
    )


class TestHourlyChartPoints:
    """Test chart data preparation."""

    def test_labels_are_hours(self):
        points = hourly_chart_points(_series(3))

        assert points == [("0:00", 0.0, 0.0), ("1:00", 0.5, 1.0), ("2:00", 1.0, 2.0)]

    def test_caps_at_24_points(self):
        assert len(hourly_chart_points(_series(48))) == 24

    def test_empty_series(self):
        assert hourly_chart_points(HourlySeries()) == []

    def test_unparseable_time_kept_as_is(self):
        series = HourlySeries(time=["soon"], pm10=[1.0], pm2_5=[2.0])

        assert hourly_chart_points(series) == [("soon", 2.0, 1.0)]


class TestFigures:
    """Test Plotly figure construction."""

    def test_pollutant_chart_has_two_traces(self):
        fig = build_pollutant_chart(_series(5))

        assert isinstance(fig, go.Figure)
        assert [trace.name for trace in fig.data] == ["PM2.5", "PM10"]
        assert len(fig.data[0].x) == 5

    def test_gauge_title_is_category(self):
        fig = build_aqi_gauge(120)

        assert fig.data[0].value == 120
        assert "Unhealthy for Sensitive Groups" in fig.data[0].title.text
        assert len(fig.data[0].gauge.steps) == 6


class TestEcoTips:
    """Test static eco content."""

    def test_tips_by_audience(self):
        assert tips_for("individual") == INDIVIDUAL_TIPS
        assert tips_for("community") == COMMUNITY_TIPS
        assert [t.title for t in INDIVIDUAL_TIPS] == ["Green Commute", "Energy Efficiency", "Reduce & Reuse"]

    def test_unknown_audience(self):
        with pytest.raises(ValueError):
            tips_for("government")

    def test_did_you_know(self):
        assert "Snake Plants" in DID_YOU_KNOW


class TestFormatTimeAgo:
    """Test the last-updated label."""

    def test_never_updated(self):
        assert format_time_ago(None) == "Updated just now"

    def test_just_now(self):
        now = datetime(2026, 10, 19, 12, 0, 30)
        assert format_time_ago(now - timedelta(seconds=30), now) == "Updated just now"

    def test_one_minute(self):
        now = datetime(2026, 10, 19, 12, 0)
        assert format_time_ago(now - timedelta(seconds=90), now) == "Updated 1 minute ago"

    def test_many_minutes(self):
        now = datetime(2026, 10, 19, 12, 0)
        assert format_time_ago(now - timedelta(minutes=17), now) == "Updated 17 minutes ago"


class TestChatSessionLifecycle:
    """Test that the dashboard keeps one chat transcript across data changes."""

    @pytest.fixture()
    def state(self):
        return SimpleNamespace(chat_session=None, chat_context_key=None, chat_error=None)

    @patch("airguard.app.create_chat_session")
    def test_context_change_keeps_transcript(self, mock_create, state, sample_reading):
        client = MagicMock()
        client.messages.create.return_value = MagicMock(
            content=[MagicMock(type="text", text="Clean air today.")], stop_reason="end_turn"
        )
        mock_create.side_effect = lambda context: ChatSession(context=context, client=client)
        london = GeoLocation(51.5, -0.12, "London, UK")
        paris = GeoLocation(48.85, 2.35, "Paris, France")

        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            session = _ensure_chat_session(london, sample_reading)
            session.send_message("How is the air?")

            again = _ensure_chat_session(paris, replace(sample_reading, aqi=120))

        assert again is session
        mock_create.assert_called_once()
        assert [m.text for m in again.messages][-2:] == ["How is the air?", "Clean air today."]
        assert again.context["locationName"] == "Paris, France"
        assert again.history == []

    @patch("airguard.app.create_chat_session")
    def test_same_context_reuses_session(self, mock_create, state, sample_reading):
        mock_create.side_effect = lambda context: ChatSession(context=context, client=MagicMock())
        london = GeoLocation(51.5, -0.12, "London, UK")

        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            first = _ensure_chat_session(london, sample_reading)
            second = _ensure_chat_session(london, sample_reading)

        assert first is second
        mock_create.assert_called_once()


class TestPageRefreshAndNotifications:
    """Test the periodic rerun and the queued alerts confirmation."""

    @patch("airguard.app.st_autorefresh")
    def test_clock_refresh_every_minute(self, mock_refresh):
        _schedule_clock_refresh()

        mock_refresh.assert_called_once_with(interval=60_000, key="clock_autorefresh")

    @patch("airguard.app.config.CLOCK_REFRESH_SECONDS", 0)
    @patch("airguard.app.st_autorefresh")
    def test_clock_refresh_disabled(self, mock_refresh):
        _schedule_clock_refresh()

        mock_refresh.assert_not_called()

    @patch("airguard.app._show_notification")
    def test_queued_confirmation_shown_once(self, mock_show):
        confirmation = AlertMonitor().enable()
        state = SimpleNamespace(pending_notification=confirmation)

        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            _flush_pending_notification()
            _flush_pending_notification()

        mock_show.assert_called_once_with(confirmation)
        assert state.pending_notification is None


class TestBrowserLocation:
    """Test switching to the position reported by the browser."""

    @pytest.fixture()
    def state(self):
        return SimpleNamespace(
            location=GeoLocation(51.5, -0.12, "London, UK"),
            location_source="default",
            geo_request=1,
            geo_pending=True,
        )

    @patch("airguard.app._cached_reverse_geocode", return_value="Lyon, France")
    @patch("airguard.app.get_geolocation")
    def test_uses_browser_coords(self, mock_geo, mock_reverse, state):
        mock_geo.return_value = {"coords": {"latitude": 45.764, "longitude": 4.8357}}

        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            _resolve_browser_location()

        assert state.location == GeoLocation(45.764, 4.8357, "Lyon, France")
        assert state.location_source == "browser"
        assert state.geo_pending is False
        mock_geo.assert_called_once_with(component_key="geolocation_1")

    @patch("airguard.app.get_geolocation", return_value=None)
    def test_waits_for_permission_answer(self, mock_geo, state):
        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            _resolve_browser_location()

        assert state.geo_pending is True
        assert state.location.display_name == "London, UK"

    @patch("airguard.app._fallback_location")
    @patch("airguard.app.get_geolocation")
    def test_denied_on_request_falls_back(self, mock_geo, mock_fallback, state):
        mock_geo.return_value = {"error": {"code": 1, "message": "User denied Geolocation"}}
        state.geo_request = 2

        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            _resolve_browser_location()

        assert state.geo_pending is False
        mock_fallback.assert_called_once()
        mock_st.sidebar.warning.assert_called_once()

    @patch("airguard.app.get_geolocation")
    def test_no_request_pending(self, mock_geo, state):
        state.geo_pending = False

        with patch("airguard.app.st") as mock_st:
            mock_st.session_state = state
            _resolve_browser_location()

        mock_geo.assert_not_called()

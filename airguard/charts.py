"""Plotly figures for the dashboard: the AQI gauge and the hourly PM chart."""

from __future__ import annotations

from datetime import datetime

import plotly.graph_objects as go

from airguard.air_quality import HourlySeries
from airguard.aqi import AQI_CATEGORIES, aqi_category


PM25_COLOR = "#10b981"
PM10_COLOR = "#6366f1"


def _hour_label(timestamp: str) -> str:
    """'2026-10-19T09:00' -> '9:00'."""
    try:
        return f"{datetime.fromisoformat(timestamp).hour}:00"
    except (ValueError, TypeError):
        return timestamp


def hourly_chart_points(series: HourlySeries, limit: int = 24) -> list[tuple[str, float, float]]:
    """Return (label, pm25, pm10) triples for the first ``limit`` hours."""
    return [
        (_hour_label(t), pm25, pm10)
        for t, pm25, pm10 in zip(series.time[:limit], series.pm2_5, series.pm10)
    ]


def build_pollutant_chart(series: HourlySeries, limit: int = 24) -> go.Figure:
    """Area chart of PM2.5 and PM10 over the day."""
    points = hourly_chart_points(series, limit)
    labels = [p[0] for p in points]

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=labels,
        y=[p[1] for p in points],
        name="PM2.5",
        mode="lines",
        fill="tozeroy",
        line={"color": PM25_COLOR, "width": 2},
        fillcolor="rgba(16, 185, 129, 0.2)",
    ))
    fig.add_trace(go.Scatter(
        x=labels,
        y=[p[2] for p in points],
        name="PM10",
        mode="lines",
        fill="tozeroy",
        line={"color": PM10_COLOR, "width": 2},
        fillcolor="rgba(99, 102, 241, 0.2)",
    ))
    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        height=280,
        margin=dict(l=10, r=10, t=10, b=10),
        legend=dict(orientation="h", y=1.1),
        hovermode="x unified",
        yaxis=dict(gridcolor="#f1f5f9", title="µg/m³"),
        xaxis=dict(showgrid=False),
    )
    return fig


def build_aqi_gauge(aqi: float) -> go.Figure:
    """Gauge for the current AQI, with steps colored by EPA band."""
    category = aqi_category(aqi)

    steps = []
    lower = 0
    for band in AQI_CATEGORIES:
        steps.append({"range": [lower, band.upper], "color": band.color})
        lower = band.upper

    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=aqi,
        domain={"x": [0, 1], "y": [0, 1]},
        title={"text": f"<b>{category.label}</b>", "font": {"size": 20, "color": category.color}},
        number={"font": {"size": 48}},
        gauge={
            "axis": {
                "range": [0, 500],
                "tickvals": [0, 50, 100, 150, 200, 300, 500],
                "ticktext": ["0", "50", "100", "150", "200", "300", "500+"],
            },
            "bar": {"color": "#1e293b", "thickness": 0.25},
            "borderwidth": 0,
            "steps": steps,
            "threshold": {
                "line": {"color": "#1e293b", "width": 4},
                "thickness": 0.75,
                "value": aqi,
            },
        },
    ))
    fig.update_layout(
        paper_bgcolor="rgba(0,0,0,0)",
        height=280,
        margin=dict(l=20, r=20, t=50, b=20),
    )
    return fig

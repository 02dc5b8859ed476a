"""AI health advisor powered by the Anthropic Claude API.

Turns the current pollutant snapshot into three short, actionable
health tips. The model is forced to answer through a tool call so the
tips come back as structured JSON rather than free text.
"""

from __future__ import annotations

from dataclasses import dataclass

import anthropic
from loguru import logger

from airguard import config
from airguard.air_quality import AirQualityReading


ICON_TYPES = ("mask", "window", "exercise", "generic")


@dataclass(frozen=True)
class HealthTip:
    """A single health recommendation.

    Attributes:
        title: Short headline.
        description: One or two sentences of advice.
        icon: One of "mask", "window", "exercise", "generic".
    """

    title: str
    description: str
    icon: str = "generic"


FALLBACK_TIPS: list[HealthTip] = [
    HealthTip("Monitor Levels", "Keep an eye on changing air quality.", "generic"),
    HealthTip("Stay Hydrated", "Drinking water helps your body function.", "generic"),
]


_TIPS_TOOL = {
    "name": "record_health_tips",
    "description": "Record health recommendations for the given air quality data.",
    "input_schema": {
        "type": "object",
        "properties": {
            "tips": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "title": {"type": "string"},
                        "description": {"type": "string"},
                        "icon": {"type": "string", "enum": list(ICON_TYPES)},
                    },
                    "required": ["title", "description", "icon"],
                },
            }
        },
        "required": ["tips"],
    },
}


_PROMPT = """\
Analyze the following air quality data:
AQI: {aqi}
PM2.5: {pm25}
PM10: {pm10}
NO2: {no2}
Ozone: {o3}

Provide 3 specific, actionable health recommendations based on this data.
Classify each tip with an icon type: 'mask', 'window' (ventilation), 'exercise' (outdoor activity), or 'generic'.
"""


def _build_prompt(reading: AirQualityReading) -> str:
    return _PROMPT.format(
        aqi=reading.aqi,
        pm25=reading.pm25,
        pm10=reading.pm10,
        no2=reading.no2,
        o3=reading.o3,
    )


def _parse_tips(raw_tips) -> list[HealthTip]:
    """Convert the tool input into HealthTips, dropping incomplete entries."""
    if not isinstance(raw_tips, list):
        raise ValueError(f"Expected a list of tips, got {type(raw_tips).__name__}")

    tips = []
    for item in raw_tips:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title", "")).strip()
        description = str(item.get("description", "")).strip()
        if not title or not description:
            continue
        icon = item.get("icon")
        tips.append(
            HealthTip(
                title=title,
                description=description,
                icon=icon if icon in ICON_TYPES else "generic",
            )
        )
    return tips


def get_health_advice(
    reading: AirQualityReading,
    client: anthropic.Anthropic | None = None,
) -> list[HealthTip]:
    """Ask Claude for health tips for the given reading.

    Never raises: on any failure the error is logged and
    FALLBACK_TIPS is returned.

    Args:
        reading: The current pollutant snapshot.
        client: Optional pre-built Anthropic client.

    Returns:
        The tips from the model (possibly empty), or FALLBACK_TIPS.
    """
    try:
        if client is None:
            api_key = config.get_anthropic_api_key()
            if not api_key:
                raise ValueError("ANTHROPIC_API_KEY is not set")
            client = anthropic.Anthropic(api_key=api_key)

        response = client.messages.create(
            model=config.ANTHROPIC_MODEL,
            max_tokens=config.ADVICE_MAX_TOKENS,
            tools=[_TIPS_TOOL],
            tool_choice={"type": "tool", "name": _TIPS_TOOL["name"]},
            messages=[{"role": "user", "content": _build_prompt(reading)}],
        )

        for block in response.content:
            if block.type == "tool_use" and block.name == _TIPS_TOOL["name"]:
                return _parse_tips((block.input or {}).get("tips", []))
        return []
    except (anthropic.APIError, ValueError, AttributeError, TypeError) as exc:
        logger.error("Health advice error: {}", exc)
        return list(FALLBACK_TIPS)

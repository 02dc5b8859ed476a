"""Static eco-action content shown under the dashboard."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EcoTip:
    """One suggested action for cleaner air.

    Attributes:
        title: Short action name.
        description: One or two sentences on what to do and why it helps.
    """

    title: str
    description: str


INDIVIDUAL_TIPS: tuple[EcoTip, ...] = (
    EcoTip(
        "Green Commute",
        "Choose walking, cycling, or public transport over driving. "
        "One bus can replace 40 cars on the road.",
    ),
    EcoTip(
        "Energy Efficiency",
        "Switch to LED bulbs and unplug electronics. "
        "Less power demand means fewer emissions from power plants.",
    ),
    EcoTip(
        "Reduce & Reuse",
        "Minimize waste. Burning trash is a major source of toxic pollutants. "
        "Recycle whenever possible.",
    ),
)

COMMUNITY_TIPS: tuple[EcoTip, ...] = (
    EcoTip(
        "Urban Greening",
        "Support local tree-planting. Trees act as natural filters, "
        "absorbing CO2 and trapping dust.",
    ),
    EcoTip(
        "Report Pollution",
        "Use local apps to report illegal waste burning or excessive "
        "factory smoke to authorities.",
    ),
    EcoTip(
        "Community Gardens",
        "Start a garden. It reduces heat islands and improves local micro-climates.",
    ),
)

TIPS_BY_AUDIENCE: dict[str, tuple[EcoTip, ...]] = {
    "individual": INDIVIDUAL_TIPS,
    "community": COMMUNITY_TIPS,
}

INTRO = (
    "Improving air quality starts with small daily choices. "
    "See how your actions ripple out to create a cleaner future."
)

DID_YOU_KNOW = (
    "Indoor plants like Snake Plants and Spider Plants can naturally filter "
    "indoor air pollutants like benzene and formaldehyde."
)


def tips_for(audience: str) -> tuple[EcoTip, ...]:
    """Return the tips for "individual" or "community"."""
    try:
        return TIPS_BY_AUDIENCE[audience]
    except KeyError:
        raise ValueError(f"Unknown audience: {audience!r}")

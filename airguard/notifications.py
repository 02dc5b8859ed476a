"""High-pollution alerts.

AlertMonitor decides when to notify; notification_script renders the
browser-side snippet that shows a desktop notification.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from airguard import config
from airguard.aqi import is_unhealthy


APP_TITLE = "AirGuard AI"
ALERT_ICON_URL = "https://cdn-icons-png.flaticon.com/512/5664/5664979.png"


@dataclass(frozen=True)
class Notification:
    """A desktop notification to show.

    Attributes:
        title: Notification title.
        body: Notification body text.
        require_interaction: Keep it on screen until dismissed.
    """

    title: str
    body: str
    require_interaction: bool = False


class AlertMonitor:
    """Tracks whether alerts are enabled and whether one was already sent.

    At most one alert is raised per data load: call ``reset()`` whenever
    fresh readings arrive.
    """

    def __init__(self, threshold: float | None = None):
        self.threshold = config.AQI_ALERT_THRESHOLD if threshold is None else threshold
        self.enabled = False
        self.has_sent_alert = False

    def enable(self) -> Notification:
        self.enabled = True
        return Notification(
            APP_TITLE,
            "Notifications enabled! We'll alert you when air quality drops.",
        )

    def disable(self) -> None:
        self.enabled = False

    def toggle(self) -> Notification | None:
        """Flip the enabled state, returning the confirmation when turning on."""
        if self.enabled:
            self.disable()
            return None
        return self.enable()

    def reset(self) -> None:
        self.has_sent_alert = False

    def check(self, aqi: float) -> Notification | None:
        """Return a warning if one is due for this AQI, else None."""
        if not self.enabled or self.has_sent_alert:
            return None
        if not is_unhealthy(aqi, self.threshold):
            return None

        self.has_sent_alert = True
        return Notification(
            "Air Quality Warning ⚠️",
            f"High pollution detected! AQI is {aqi:g}. Consider wearing a mask if outside.",
            require_interaction=True,
        )


def notification_script(notification: Notification) -> str:
    """Build an HTML snippet that shows a browser desktop notification.

    Permission is requested first if the user has not decided yet; a
    denied permission is left alone.
    """
    options = {
        "body": notification.body,
        "icon": ALERT_ICON_URL,
        "requireInteraction": notification.require_interaction,
    }
    return (
        "<script>\n"
        "(function() {\n"
        "  const N = window.parent.Notification || window.Notification;\n"
        "  if (!N) { return; }\n"
        f"  const show = () => new N({json.dumps(notification.title)}, {json.dumps(options)});\n"
        "  if (N.permission === 'granted') { show(); }\n"
        "  else if (N.permission !== 'denied') {\n"
        "    N.requestPermission().then((p) => { if (p === 'granted') { show(); } });\n"
        "  }\n"
        "})();\n"
        "</script>"
    )

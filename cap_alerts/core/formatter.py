"""Message formatting - Pure functions.

This module formats CAP alerts into notification messages.
All functions are pure with no side effects.
"""

from datetime import datetime, timezone, tzinfo
from typing import Any

from cap_alerts.core.alert import UNPARSED, Alert


UPDATE_PREFIX = "Updated: "


def format_time(moment: datetime, tz: tzinfo = timezone.utc) -> str:
    """Format a timestamp for humans, e.g. 'October 5 at 3:07pm'.

    Pure function.

    Args:
        moment: Aware datetime
        tz: Display time zone

    Returns:
        Formatted string, or 'unknown' for the UNPARSED sentinel
    """
    if moment == UNPARSED:
        return "unknown"

    local = moment.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return f"{local:%B} {local.day} at {hour}:{local:%M}{meridiem}"


def format_alert_details(
    alert: Alert,
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> str:
    """Format the body text of an alert notification.

    Pure function.

    The "Effective" clause is only included while the alert is not yet
    in effect.

    Args:
        alert: Alert to describe
        now: Current time (aware datetime)
        tz: Display time zone

    Returns:
        Text like 'Flood Watch. Effective October 5 at 3:07pm. Expires ...'
    """
    parts = [alert.event_name or alert.title or "Weather alert"]

    if alert.effective_at > now:
        parts.append(f"Effective {format_time(alert.effective_at, tz)}")

    parts.append(f"Expires {format_time(alert.expires_at, tz)}")

    return ". ".join(parts) + "."


def build_message(
    alert: Alert,
    now: datetime,
    tz: tzinfo = timezone.utc,
    is_update: bool = False,
) -> dict[str, str]:
    """Build the notifier message for an alert.

    Pure function.

    Args:
        alert: Alert to notify about
        now: Current time (aware datetime)
        tz: Display time zone
        is_update: Whether this re-notifies a previously sent alert

    Returns:
        Message dict with 'id', 'title' and 'details'
    """
    details = format_alert_details(alert, now, tz)
    if is_update:
        details = UPDATE_PREFIX + details

    return {
        "id": alert.id,
        "title": alert.title,
        "details": details,
    }


def format_ifttt_payload(message: dict[str, str]) -> dict[str, Any]:
    """Map a notifier message onto the IFTTT Maker webhook fields.

    Pure function.

    IFTTT passes value1..value3 through to the applet.
    """
    return {
        "value1": message.get("id", ""),
        "value2": message.get("details", ""),
        "value3": message.get("title", ""),
    }


def format_alert_summary(alert: Alert, tz: tzinfo = timezone.utc) -> str:
    """Format a one-line summary of an alert.

    Pure function.
    """
    return (
        f"{alert.event_name or alert.title} "
        f"[{alert.severity}/{alert.urgency}/{alert.certainty}] "
        f"updated {format_time(alert.updated_at, tz)}, "
        f"expires {format_time(alert.expires_at, tz)}"
    )

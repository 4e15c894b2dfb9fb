"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the cap_alerts package.
"""

from cap_alerts.main import (
    cap_alert_monitor,
    cap_alert_monitor_pubsub,
)

__all__ = [
    "cap_alert_monitor",
    "cap_alert_monitor_pubsub",
]

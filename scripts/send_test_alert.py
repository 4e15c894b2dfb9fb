#!/usr/bin/env python3
"""Send a test alert through the configured IFTTT webhook.

⚠️  WARNING: This script sends a REAL notification to the IFTTT applet!

This script creates a synthetic CAP alert and sends it using the same
message formatting as production alerts. A [TEST] marker is added to
the title. The alert cache is not touched.

Usage:
    # Dry run (preview only, no sends)
    python scripts/send_test_alert.py --dry-run

    # Send a test tornado warning
    python scripts/send_test_alert.py --event "Tornado Warning"

    # Send as an update notification
    python scripts/send_test_alert.py --update

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
    IFTTT_EVENT / IFTTT_KEY: Used when no config file exists
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timedelta, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cap_alerts.core.alert import Alert
from cap_alerts.core.config import resolve_timezone
from cap_alerts.core.formatter import build_message, format_ifttt_payload
from cap_alerts.shell.config_loader import ConfigError, load_config
from cap_alerts.shell.ifttt_client import IftttNotifier

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def create_test_alert(
    event: str = "Severe Thunderstorm Warning",
    effective_in_minutes: int = 0,
    expires_in_hours: int = 2,
) -> Alert:
    """Create a synthetic test alert.

    Args:
        event: CAP event name
        effective_in_minutes: Minutes until the alert takes effect
        expires_in_hours: Hours until the alert expires

    Returns:
        Synthetic Alert object
    """
    now = datetime.now(timezone.utc).replace(microsecond=0)
    return Alert(
        id="test-alert-" + now.strftime("%Y%m%d%H%M%S"),
        title=f"[TEST] {event} issued {now:%B %d at %H:%M} UTC",
        event_name=event,
        published_at=now,
        updated_at=now,
        status="Actual",
        msg_type="Alert",
        urgency="Immediate",
        severity="Severe",
        certainty="Observed",
        effective_at=now + timedelta(minutes=effective_in_minutes),
        expires_at=now + timedelta(hours=expires_in_hours),
    )


def main():
    parser = argparse.ArgumentParser(
        description="Send a test alert to the configured IFTTT webhook",
        epilog="⚠️  WARNING: This sends a REAL notification! Use --dry-run first.",
    )
    parser.add_argument(
        "--event",
        type=str,
        default="Severe Thunderstorm Warning",
        help="CAP event name (default: Severe Thunderstorm Warning)",
    )
    parser.add_argument(
        "--effective-in",
        type=int,
        default=0,
        help="Minutes until the alert takes effect (default: 0)",
    )
    parser.add_argument(
        "--expires-in",
        type=int,
        default=2,
        help="Hours until the alert expires (default: 2)",
    )
    parser.add_argument(
        "--update",
        action="store_true",
        help="Format the message as an update to a previous alert",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print what would be sent without actually sending",
    )
    args = parser.parse_args()

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    alert = create_test_alert(
        event=args.event,
        effective_in_minutes=args.effective_in,
        expires_in_hours=args.expires_in,
    )
    tz = resolve_timezone(config.display_timezone) or timezone.utc
    message = build_message(
        alert,
        datetime.now(timezone.utc),
        tz,
        is_update=args.update,
    )

    logger.info("")
    logger.info("Test Alert Details:")
    logger.info("  ID: %s", message["id"])
    logger.info("  Title: %s", message["title"])
    logger.info("  Details: %s", message["details"])
    logger.info("")

    if args.dry_run:
        logger.info("DRY RUN - Would send to IFTTT event '%s':", config.ifttt_event)
        logger.info("  %s", format_ifttt_payload(message))
        return 0

    if not config.ifttt_event or not config.ifttt_key:
        logger.error("IFTTT event and key must be configured")
        return 1

    notifier = IftttNotifier(
        event=config.ifttt_event,
        key=config.ifttt_key,
        timeout=config.request_timeout_seconds,
    )
    response = notifier.notify(message)

    if response.success:
        logger.info("  ✓ Test alert sent successfully")
        return 0
    else:
        logger.error("  ✗ Failed to send test alert: %s", response.error)
        return 1


if __name__ == "__main__":
    sys.exit(main())

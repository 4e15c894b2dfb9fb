#!/usr/bin/env python3
"""Show the alert cache.

Lists the alerts recorded as already notified, newest update first.

Usage:
    python scripts/show_cache.py
    python scripts/show_cache.py --cache-file /var/lib/cap_alerts.json
    python scripts/show_cache.py --clear

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
"""

import argparse
import logging
import os
import sys
from datetime import timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cap_alerts.core.config import resolve_timezone
from cap_alerts.core.formatter import format_alert_summary
from cap_alerts.shell.cache_store import CacheFileStore
from cap_alerts.shell.config_loader import ConfigError, load_config

logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Show or clear the alert cache")
    parser.add_argument(
        "--cache-file",
        type=str,
        default=None,
        help="Cache file path (default: from configuration)",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete the cache file; every active alert is sent again next pass",
    )
    args = parser.parse_args()

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    store = CacheFileStore(args.cache_file or config.cache_file)

    if args.clear:
        return 0 if store.clear() else 1

    alerts = store.load()
    print(f"{store.path}: {len(alerts)} cached alert(s)")

    tz = resolve_timezone(config.display_timezone) or timezone.utc
    for alert in sorted(alerts.values(), key=lambda a: a.updated_at, reverse=True):
        print(f"  {alert.id}")
        print(f"    {format_alert_summary(alert, tz)}")

    return 0


if __name__ == "__main__":
    sys.exit(main())

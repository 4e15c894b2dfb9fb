"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- NWS CAP feed client (HTTP)
- IFTTT webhook notifier (HTTP)
- Cache file store (file)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from cap_alerts.shell.feed_client import NWSFeedClient, FeedUnavailableError
from cap_alerts.shell.ifttt_client import IftttNotifier
from cap_alerts.shell.cache_store import CacheFileStore
from cap_alerts.shell.config_loader import load_config, ConfigError

__all__ = [
    "NWSFeedClient",
    "FeedUnavailableError",
    "IftttNotifier",
    "CacheFileStore",
    "load_config",
    "ConfigError",
]

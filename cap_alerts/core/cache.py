"""Alert cache - Bounded in-memory map of previously seen alerts.

The cache maps alert IDs to the last alert snapshot that was acted upon.
It is loaded once per pass, mutated in memory, trimmed, and written back.

Note: Reading and writing the cache file is handled by the imperative
shell (CacheFileStore). This module only contains the in-memory logic.
"""

from typing import Iterator, Mapping

from cap_alerts.core.alert import Alert


# Maximum number of alerts kept between passes
DEFAULT_MAX_CACHED_ALERTS = 10


def trim_alerts(alerts: Mapping[str, Alert], max_size: int) -> dict[str, Alert]:
    """Keep only the `max_size` most recently updated alerts.

    Pure function.

    Entries are ordered by updated_at, newest first. The sort is stable,
    so alerts with equal timestamps keep their insertion order.

    Args:
        alerts: Alert ID -> Alert
        max_size: Maximum entries to keep

    Returns:
        New mapping with at most max_size entries
    """
    if len(alerts) <= max_size:
        return dict(alerts)

    ordered = sorted(
        alerts.items(),
        key=lambda item: item[1].updated_at,
        reverse=True,
    )
    return dict(ordered[:max(max_size, 0)])


class AlertCache:
    """In-memory alert cache for a single polling pass."""

    def __init__(self, alerts: Mapping[str, Alert] | None = None) -> None:
        """Initialize cache.

        Args:
            alerts: Initial contents (typically from CacheFileStore.load())
        """
        self._alerts: dict[str, Alert] = dict(alerts or {})

    def get(self, alert_id: str) -> Alert | None:
        """Look up an alert by ID."""
        return self._alerts.get(alert_id)

    def put(self, alert_id: str, alert: Alert) -> None:
        """Insert or overwrite the alert stored under alert_id."""
        self._alerts[alert_id] = alert

    def trim(self, max_size: int) -> set[str]:
        """Evict the oldest entries beyond max_size.

        Returns:
            IDs of evicted alerts
        """
        kept = trim_alerts(self._alerts, max_size)
        evicted = set(self._alerts) - set(kept)
        self._alerts = kept
        return evicted

    def to_dict(self) -> dict[str, Alert]:
        """Return a copy of the cache contents."""
        return dict(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts

    def __len__(self) -> int:
        return len(self._alerts)

    def __iter__(self) -> Iterator[str]:
        return iter(self._alerts)

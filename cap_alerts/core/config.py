"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import tzinfo
from enum import Enum

from dateutil import tz as dateutil_tz

from cap_alerts.core.cache import DEFAULT_MAX_CACHED_ALERTS
from cap_alerts.core.importance import (
    DEFAULT_POLICY,
    ImportancePolicy,
    unknown_policy_fields,
)


CACHE_FILE_NAME = "cap_alerts.json"

# Timeout for feed and webhook requests (seconds)
DEFAULT_REQUEST_TIMEOUT = 20

# Sent with feed and webhook requests
USER_AGENT = "cap-alerts/1.0 (CAP alert notifier)"


class LogLevel(Enum):
    """Log verbosity accepted in configuration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def parse(cls, value: "str | int | LogLevel | None") -> "LogLevel":
        """Parse a level name ('info', 'WARNING') or numeric level.

        Raises:
            ValueError: If the value is not a known level
        """
        if value is None:
            return cls.INFO
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, int):
            return cls(value)

        name = str(value).strip().upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


def default_cache_file() -> str:
    """Default cache file path in the system temp directory."""
    return os.path.join(tempfile.gettempdir(), CACHE_FILE_NAME)


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        alert_zone: NWS zone or county ID (e.g., 'TXZ211', 'TXC453')
        ifttt_event: IFTTT Maker event name for the webhook
        ifttt_key: IFTTT Maker webhook key
        send_updates: Re-notify on updates to already sent alerts
        cache_file: Path of the JSON file holding seen alerts
        log_level: Log verbosity
        importance: Field name -> allowed values
        max_cached_alerts: Maximum alerts kept in the cache file
        request_timeout_seconds: Timeout for feed and webhook requests
        display_timezone: Time zone name used in message text
    """
    alert_zone: str = ""
    ifttt_event: str = ""
    ifttt_key: str = ""
    send_updates: bool = True
    cache_file: str = field(default_factory=default_cache_file)
    log_level: LogLevel = LogLevel.INFO
    importance: ImportancePolicy = field(default_factory=lambda: dict(DEFAULT_POLICY))
    max_cached_alerts: int = DEFAULT_MAX_CACHED_ALERTS
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT
    display_timezone: str = "UTC"


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def resolve_timezone(name: str) -> tzinfo | None:
    """Resolve a time zone name ('UTC', 'America/Chicago').

    Returns:
        tzinfo, or None if the name is unknown
    """
    if not name:
        return None
    return dateutil_tz.gettz(name)


def _is_unresolved(value: str) -> bool:
    return not value or value.startswith("${")


def validate_policy(policy: ImportancePolicy) -> list[ValidationError]:
    """Validate an importance policy.

    Pure function.

    Args:
        policy: Policy to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not policy:
        errors.append(ValidationError(
            field="importance",
            message="Importance policy is empty; every unexpired alert would be sent",
        ))

    for name in unknown_policy_fields(policy):
        errors.append(ValidationError(
            field=f"importance.{name}",
            message=f"Unknown alert field '{name}'",
        ))

    for name, allowed in policy.items():
        if not allowed:
            errors.append(ValidationError(
                field=f"importance.{name}",
                message=f"No allowed values for '{name}'; no alert can match",
                severity="warning",
            ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if not config.alert_zone:
        errors.append(ValidationError(
            field="alert_zone",
            message="No alert zone configured",
        ))

    if _is_unresolved(config.ifttt_event):
        errors.append(ValidationError(
            field="ifttt_event",
            message="IFTTT event not set (or still contains placeholder)",
            severity="warning",
        ))

    if _is_unresolved(config.ifttt_key):
        errors.append(ValidationError(
            field="ifttt_key",
            message="IFTTT key not set (or still contains placeholder)",
            severity="warning",
        ))

    if not config.cache_file:
        errors.append(ValidationError(
            field="cache_file",
            message="Cache file path is empty",
        ))

    errors.extend(validate_policy(config.importance))

    if config.max_cached_alerts <= 0:
        errors.append(ValidationError(
            field="max_cached_alerts",
            message=f"Must be positive, got {config.max_cached_alerts}",
        ))

    if config.request_timeout_seconds <= 0:
        errors.append(ValidationError(
            field="request_timeout_seconds",
            message=f"Must be positive, got {config.request_timeout_seconds}",
        ))

    if resolve_timezone(config.display_timezone) is None:
        errors.append(ValidationError(
            field="display_timezone",
            message=f"Unknown time zone '{config.display_timezone}'",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )

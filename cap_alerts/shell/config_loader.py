"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

The Config model is defined in cap_alerts/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from cap_alerts.core.config import (
    DEFAULT_REQUEST_TIMEOUT,
    Config,
    LogLevel,
    default_cache_file,
)
from cap_alerts.core.cache import DEFAULT_MAX_CACHED_ALERTS
from cap_alerts.core.importance import parse_policy


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Configuration is missing or holds invalid values."""


def _resolve_value(value: Any) -> Any:
    """Resolve a value that may be an environment variable placeholder.

    "${VAR}" is replaced by the value of VAR. Unset variables leave the
    placeholder in place so validation can report it.

    Args:
        value: Value to resolve

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_bool(value: Any, name: str) -> bool:
    """Parse a boolean from YAML or environment text."""
    if isinstance(value, bool):
        return value

    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_int(value: Any, name: str) -> int:
    """Parse an integer from YAML or environment text."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def _parse_log_level(value: Any) -> LogLevel:
    try:
        return LogLevel.parse(value)
    except ValueError as e:
        raise ConfigError(str(e)) from None


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object

    Raises:
        ConfigError: If a value has the wrong type
    """
    importance = data.get("importance")
    if importance is not None and not isinstance(importance, dict):
        raise ConfigError("importance must be a mapping of field name to allowed values")

    return Config(
        alert_zone=str(_resolve_value(data.get("alert_zone", ""))).strip(),
        ifttt_event=str(_resolve_value(data.get("ifttt_event", ""))),
        ifttt_key=str(_resolve_value(data.get("ifttt_key", ""))),
        send_updates=_parse_bool(_resolve_value(data.get("send_updates", True)), "send_updates"),
        cache_file=str(_resolve_value(data.get("cache_file") or default_cache_file())),
        log_level=_parse_log_level(_resolve_value(data.get("log_level", "INFO"))),
        importance=parse_policy(importance),
        max_cached_alerts=_parse_int(
            data.get("max_cached_alerts", DEFAULT_MAX_CACHED_ALERTS),
            "max_cached_alerts",
        ),
        request_timeout_seconds=_parse_int(
            data.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT),
            "request_timeout_seconds",
        ),
        display_timezone=str(data.get("display_timezone", "UTC")),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object. Falls back to environment variables
        when the file does not exist.

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        logger.warning("Config file is empty, using environment")
        return load_config_from_env()

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: zone %s, %d importance fields, send_updates=%s",
        config.alert_zone,
        len(config.importance),
        config.send_updates,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        ALERT_ZONE: NWS zone or county ID
        IFTTT_EVENT: IFTTT Maker event name
        IFTTT_KEY: IFTTT Maker webhook key
        SEND_UPDATES: Re-notify on updates (true/false)
        CACHE_FILE: Cache file path
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR
        MAX_CACHED_ALERTS: Cache size bound
        REQUEST_TIMEOUT: Request timeout in seconds
        DISPLAY_TIMEZONE: Time zone name for message text

    Returns:
        Config object from environment

    Raises:
        ConfigError: If a variable holds an invalid value
    """
    env = os.environ

    return Config(
        alert_zone=env.get("ALERT_ZONE", "").strip(),
        ifttt_event=env.get("IFTTT_EVENT", ""),
        ifttt_key=env.get("IFTTT_KEY", ""),
        send_updates=_parse_bool(env.get("SEND_UPDATES", "true"), "SEND_UPDATES"),
        cache_file=env.get("CACHE_FILE") or default_cache_file(),
        log_level=_parse_log_level(env.get("LOG_LEVEL", "INFO")),
        max_cached_alerts=_parse_int(
            env.get("MAX_CACHED_ALERTS", DEFAULT_MAX_CACHED_ALERTS),
            "MAX_CACHED_ALERTS",
        ),
        request_timeout_seconds=_parse_int(
            env.get("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            "REQUEST_TIMEOUT",
        ),
        display_timezone=env.get("DISPLAY_TIMEZONE", "UTC"),
    )

"""Cloud Function Entry Point.

This module provides the entry point for Google Cloud Functions.
It's a thin wrapper that loads configuration and invokes the orchestrator.
Cloud Scheduler triggers one pass at a time; passes must not overlap
because the cache file is not locked.
"""

import json
import logging
import os
import sys
from typing import Any

import functions_framework
from flask import Request

from cap_alerts.core.config import LogLevel, validate_config
from cap_alerts.orchestrator import Orchestrator, ProcessingResult
from cap_alerts.shell.config_loader import ConfigError, load_config
from cap_alerts.shell.log_setup import configure_logging


# Configure logging
try:
    _log_level = LogLevel.parse(os.environ.get("LOG_LEVEL", "INFO"))
except ValueError:
    _log_level = LogLevel.INFO
configure_logging(_log_level)
logger = logging.getLogger(__name__)


def _build_response(result: ProcessingResult) -> tuple[dict[str, Any], int]:
    """Map a processing result to a JSON response and status code."""
    if result.aborted:
        status, status_code = "aborted", 503
    elif result.success:
        status, status_code = "success", 200
    else:
        status, status_code = "partial_failure", 207  # 207 = Multi-Status

    response: dict[str, Any] = {
        "status": status,
        "summary": result.summary,
        "entries_fetched": result.entries_fetched,
        "notified": [
            {
                "id": o.alert.id,
                "event": o.alert.event_name,
                "outcome": o.outcome.value,
                "delivered": o.delivered,
            }
            for o in result.notified
        ],
        "cache_saved": result.cache_saved,
    }

    if result.errors:
        response["errors"] = result.errors

    return response, status_code


def _run_pass() -> ProcessingResult:
    """Load configuration and run one polling pass.

    Raises:
        ConfigError: If the configuration is invalid
    """
    config = load_config()

    validation = validate_config(config)
    for warning in validation.warnings:
        logger.warning("Config %s: %s", warning.field, warning.message)
    if not validation.valid:
        problems = "; ".join(
            f"{e.field}: {e.message}" for e in validation.critical_errors
        )
        raise ConfigError(problems)

    orchestrator = Orchestrator(config, log=config.log_level)
    return orchestrator.process()


@functions_framework.http
def cap_alert_monitor(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    This function is triggered by Cloud Scheduler or direct HTTP requests.
    It runs a complete polling pass.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting CAP alert polling pass")

    try:
        result = _run_pass()
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return {
            "status": "error",
            "message": f"Invalid configuration: {e}",
        }, 400
    except Exception as e:
        logger.exception("Unexpected error in CAP alert monitor")
        return {
            "status": "error",
            "message": str(e),
        }, 500

    logger.info("Completed: %s", result.summary)
    return _build_response(result)


@functions_framework.cloud_event
def cap_alert_monitor_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    Alternative trigger for Cloud Scheduler via Pub/Sub.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting CAP alert polling pass (Pub/Sub trigger)")

    try:
        result = _run_pass()
    except Exception:
        logger.exception("Unexpected error in CAP alert monitor")
        raise

    logger.info("Completed: %s", result.summary)

    for error in result.errors:
        logger.error("Error: %s", error)


# For local testing (e.g. from cron)
if __name__ == "__main__":
    print("Running CAP alert monitor locally...")

    class MockRequest:
        pass

    response, status = cap_alert_monitor(MockRequest())
    print(f"\nResponse ({status}):")
    print(json.dumps(response, indent=2))
    sys.exit(0 if status in (200, 207) else 1)

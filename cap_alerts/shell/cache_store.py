"""Cache File Store - Imperative Shell.

This module persists the alert cache as a single JSON file mapping
alert IDs to alert records. Uses whole-file overwrites.

All I/O is contained here; cache trimming logic is in the core module.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Mapping

from cap_alerts.core.alert import Alert, alert_from_record, alert_to_record


logger = logging.getLogger(__name__)


class CacheFileStore:
    """Reads and writes the alert cache file.

    This is part of the imperative shell - it handles file I/O.

    File structure:
    {
        "<alert id>": {"id": ..., "updated": <unix seconds>, ...},
        ...
    }
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize cache store.

        Args:
            path: Cache file path
        """
        self.path = Path(path)

    def load(self) -> dict[str, Alert]:
        """Read cached alerts from the file.

        This method performs file I/O. It never raises: a missing,
        unreadable, or invalid file is treated as an empty cache.

        Returns:
            Alert ID -> Alert
        """
        if not self.path.exists():
            logger.info("No cache file at %s, starting empty", self.path)
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Cache file %s unreadable, starting empty: %s", self.path, e)
            return {}

        # PHP-era files hold "null" when nothing was ever cached
        if data is None:
            return {}

        if not isinstance(data, dict):
            logger.warning(
                "Cache file %s holds %s instead of an object, starting empty",
                self.path,
                type(data).__name__,
            )
            return {}

        alerts: dict[str, Alert] = {}
        try:
            for alert_id, record in data.items():
                alerts[alert_id] = alert_from_record(record)
        except ValueError as e:
            logger.warning("Cache file %s invalid, starting empty: %s", self.path, e)
            return {}

        logger.info("Loaded %d cached alerts from %s", len(alerts), self.path)
        return alerts

    def save(self, alerts: Mapping[str, Alert]) -> bool:
        """Overwrite the cache file with the given alerts.

        This method performs file I/O. The data is written to a temporary
        file in the same directory and moved into place, so readers never
        see a partially written cache. Failures are logged, not raised.

        Args:
            alerts: Alert ID -> Alert

        Returns:
            True if the file was written
        """
        data = {alert_id: alert_to_record(alert) for alert_id, alert in alerts.items()}

        logger.info("Saving %d alerts to %s", len(data), self.path)

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                dir=self.path.parent,
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None

            logger.info("Successfully saved cache")
            return True

        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save cache to %s: %s", self.path, str(e))
            return False

        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug("Could not remove temporary file %s", tmp_path)

    def clear(self) -> bool:
        """Delete the cache file.

        Returns:
            True if the file is gone afterwards
        """
        try:
            self.path.unlink()
            logger.info("Removed cache file %s", self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("Failed to remove cache file %s: %s", self.path, str(e))
            return False
        return True

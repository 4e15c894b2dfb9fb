"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components. It's the "glue" that
makes the application work.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from cap_alerts.core.alert import Alert, normalize_entry
from cap_alerts.core.cache import AlertCache
from cap_alerts.core.config import Config, LogLevel, resolve_timezone
from cap_alerts.core.decision import Decision, decide
from cap_alerts.core.formatter import build_message
from cap_alerts.core.importance import is_important
from cap_alerts.shell.cache_store import CacheFileStore
from cap_alerts.shell.feed_client import NWSFeedClient
from cap_alerts.shell.ifttt_client import IftttNotifier, NotifyResponse
from cap_alerts.shell.log_setup import resolve_logger


class Outcome(Enum):
    """What happened to a single feed entry."""
    MISSING_ID = "missing_id"
    NOT_IMPORTANT = "not_important"
    UNCHANGED = "unchanged"
    NOTIFIED_NEW = "notified_new"
    NOTIFIED_UPDATE = "notified_update"


@dataclass
class EntryOutcome:
    """Result of processing a single feed entry.

    Attributes:
        alert: The normalized alert
        outcome: What the pass did with it
        delivered: Whether the notification was delivered (None if none sent)
        error: Delivery error message if failed
    """
    alert: Alert
    outcome: Outcome
    delivered: bool | None = None
    error: str | None = None


@dataclass
class ProcessingResult:
    """Result of a complete polling pass.

    Attributes:
        entries_fetched: Entries in the feed (including any placeholder)
        outcomes: Per-entry outcomes, in feed order
        aborted: True if the feed could not be fetched
        cache_saved: True if the cache file was written
        evicted_ids: Alert IDs dropped from the cache by trimming
        errors: Any errors that occurred
    """
    entries_fetched: int = 0
    outcomes: list[EntryOutcome] = field(default_factory=list)
    aborted: bool = False
    cache_saved: bool = False
    evicted_ids: set[str] = field(default_factory=set)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred and every delivery succeeded."""
        return not self.errors and not self.failed_deliveries

    @property
    def notified(self) -> list[EntryOutcome]:
        """Entries a notification was attempted for."""
        return [
            o for o in self.outcomes
            if o.outcome in (Outcome.NOTIFIED_NEW, Outcome.NOTIFIED_UPDATE)
        ]

    @property
    def failed_deliveries(self) -> list[EntryOutcome]:
        """Entries whose notification failed."""
        return [o for o in self.notified if o.delivered is False]

    @property
    def summary(self) -> str:
        """Human-readable summary of the processing result."""
        if self.aborted:
            return "Aborted: feed unavailable"

        delivered = len(self.notified) - len(self.failed_deliveries)
        return (
            f"Fetched {self.entries_fetched} entries, "
            f"{len(self.notified)} notifications ({delivered} delivered, "
            f"{len(self.failed_deliveries)} failed), "
            f"cache {'saved' if self.cache_saved else 'not saved'}"
        )


class Orchestrator:
    """Coordinates one polling pass over the CAP alert feed.

    This class wires together:
    - NWS feed client (fetches the Atom feed)
    - Core functions (normalizing, importance, change detection, formatting)
    - Cache file store (previously seen alerts)
    - IFTTT notifier (sends notifications)
    """

    def __init__(
        self,
        config: Config,
        feed_client: NWSFeedClient | None = None,
        notifier: IftttNotifier | None = None,
        cache_store: CacheFileStore | None = None,
        log: "logging.Logger | logging.LoggerAdapter | LogLevel | None" = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            feed_client: Feed client (created if not provided)
            notifier: Notifier (created if not provided)
            cache_store: Cache store (created if not provided)
            log: Logger to report through, or a LogLevel to create one at.
                 Defaults to config.log_level.
            clock: Returns the current aware datetime (UTC now by default)
        """
        self.config = config
        self.feed_client = feed_client or NWSFeedClient(
            timeout=config.request_timeout_seconds,
        )
        self.notifier = notifier or IftttNotifier(
            event=config.ifttt_event,
            key=config.ifttt_key,
            timeout=config.request_timeout_seconds,
        )
        self.cache_store = cache_store or CacheFileStore(config.cache_file)
        self.log = resolve_logger(log, __name__, default_level=config.log_level)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.display_tz = resolve_timezone(config.display_timezone) or timezone.utc

    def _notify(self, alert: Alert, decision: Decision, now: datetime) -> NotifyResponse:
        """Build the message for an alert and hand it to the notifier.

        Delivery problems are returned as a failed response, never raised.
        """
        message = build_message(
            alert,
            now,
            self.display_tz,
            is_update=decision is Decision.NOTIFY_UPDATE,
        )

        try:
            return self.notifier.notify(message)
        except Exception as e:
            self.log.log(logging.ERROR, "Notifier raised for alert %s: %s", alert.id, e)
            return NotifyResponse(success=False, status_code=0, error=str(e))

    def _process_entry(
        self,
        alert: Alert,
        cache: AlertCache,
        now: datetime,
    ) -> EntryOutcome:
        """Classify, decide and notify for one normalized alert.

        Args:
            alert: Normalized alert
            cache: Cache for this pass (updated in place)
            now: Time of the pass

        Returns:
            EntryOutcome for the alert
        """
        # Cache records are keyed by id
        if not alert.id:
            self.log.log(
                logging.WARNING,
                "Skipping entry without id (%s)",
                alert.title or alert.event_name or "untitled",
            )
            return EntryOutcome(alert=alert, outcome=Outcome.MISSING_ID)

        if not is_important(alert, self.config.importance, now):
            self.log.log(
                logging.DEBUG,
                "Skipping alert %s (%s): not important or expired",
                alert.id,
                alert.event_name,
            )
            return EntryOutcome(alert=alert, outcome=Outcome.NOT_IMPORTANT)

        decision = decide(alert, cache.get(alert.id), self.config.send_updates)

        if not decision.should_notify:
            self.log.log(logging.DEBUG, "Skipping alert %s: already sent", alert.id)
            return EntryOutcome(alert=alert, outcome=Outcome.UNCHANGED)

        response = self._notify(alert, decision, now)

        # Recorded even when delivery failed: no duplicate retries
        cache.put(alert.id, alert)

        outcome = (
            Outcome.NOTIFIED_UPDATE if decision is Decision.NOTIFY_UPDATE
            else Outcome.NOTIFIED_NEW
        )

        if response.success:
            self.log.log(
                logging.INFO,
                "Sent %s for alert %s (%s)",
                "update" if outcome is Outcome.NOTIFIED_UPDATE else "alert",
                alert.id,
                alert.event_name,
            )
        else:
            self.log.log(
                logging.ERROR,
                "Failed to send alert %s (%s): %s",
                alert.id,
                alert.event_name,
                response.error,
            )

        return EntryOutcome(
            alert=alert,
            outcome=outcome,
            delivered=response.success,
            error=response.error,
        )

    def process(self) -> ProcessingResult:
        """Run a complete polling pass.

        This is the main entry point that:
        1. Fetches the feed (aborts the pass if unavailable)
        2. Loads the alert cache
        3. Normalizes, classifies, decides and notifies on each entry,
           recording notified alerts in the cache
        4. Trims and saves the cache

        Returns:
            ProcessingResult with details of what happened
        """
        now = self.clock()

        # Step 1: Fetch feed
        try:
            feed = self.feed_client.fetch(self.config.alert_zone)
        except Exception as e:
            error_msg = f"Failed to fetch feed: {e}"
            self.log.log(logging.ERROR, error_msg)
            return ProcessingResult(aborted=True, errors=[error_msg])

        self.log.log(
            logging.INFO,
            "Fetched %d entries for zone %s",
            len(feed.entries),
            self.config.alert_zone,
        )

        # Step 2: Load cache
        cache = AlertCache(self.cache_store.load())

        # Step 3: Classify, decide, notify; updates the cache in place
        result = ProcessingResult(entries_fetched=len(feed.entries))

        for entry in feed.entries:
            alert = normalize_entry(entry)

            if alert.id == feed.feed_url:
                self.log.log(logging.INFO, "No active alerts for zone %s", self.config.alert_zone)
                break

            result.outcomes.append(self._process_entry(alert, cache, now))

        # Step 4: Trim and persist
        result.evicted_ids = cache.trim(self.config.max_cached_alerts)
        if result.evicted_ids:
            self.log.log(
                logging.INFO,
                "Evicted %d alerts from cache",
                len(result.evicted_ids),
            )

        result.cache_saved = self.cache_store.save(cache.to_dict())
        if not result.cache_saved:
            error_msg = "Failed to save alert cache"
            self.log.log(logging.ERROR, error_msg)
            result.errors.append(error_msg)

        self.log.log(logging.INFO, "Completed: %s", result.summary)

        return result

"""Tests for the Orchestrator module.

Tests the coordination between functional core and imperative shell.
Uses mocks for the feed client and notifier, and a real cache file.
"""

import logging
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

from cap_alerts.orchestrator import (
    EntryOutcome,
    Orchestrator,
    Outcome,
    ProcessingResult,
)
from cap_alerts.core.alert import Alert, normalize_entry
from cap_alerts.core.config import Config, LogLevel
from cap_alerts.shell.cache_store import CacheFileStore
from cap_alerts.shell.feed_client import FeedResult, FeedUnavailableError
from cap_alerts.shell.ifttt_client import NotifyResponse


NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)
FEED_URL = "https://alerts.weather.gov/cap/wwaatmget.php?x=TXC453&y=0"


def make_entry(
    alert_id: str = "X1",
    updated: datetime = NOW - timedelta(minutes=10),
    status: str = "Actual",
    expires: datetime = NOW + timedelta(hours=2),
    event: str = "Tornado Warning",
) -> dict:
    """Create a feedparser-style CAP entry."""
    return {
        "id": alert_id,
        "title": f"{event} issued",
        "published": updated.isoformat(),
        "updated": updated.isoformat(),
        "cap_event": event,
        "cap_effective": updated.isoformat(),
        "cap_expires": expires.isoformat(),
        "cap_status": status,
        "cap_msgtype": "Alert",
        "cap_urgency": "Immediate",
        "cap_severity": "Extreme",
        "cap_certainty": "Observed",
    }


def placeholder_entry() -> dict:
    """The entry the feed serves when no alerts are active."""
    return {
        "id": FEED_URL,
        "title": "There are no active watches, warnings or advisories",
        "updated": NOW.isoformat(),
    }


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "cap_alerts.json"


@pytest.fixture
def cache_store(cache_path):
    return CacheFileStore(cache_path)


@pytest.fixture
def sample_config(cache_path):
    """Create a sample configuration."""
    return Config(
        alert_zone="TXC453",
        ifttt_event="weather_alert",
        ifttt_key="test_key",
        cache_file=str(cache_path),
    )


@pytest.fixture
def mock_feed_client():
    """Create a mock feed client serving one important alert."""
    client = Mock()
    client.fetch.return_value = FeedResult(feed_url=FEED_URL, entries=[make_entry()])
    return client


@pytest.fixture
def mock_notifier():
    """Create a mock notifier that always succeeds."""
    notifier = Mock()
    notifier.notify.return_value = NotifyResponse(success=True, status_code=200)
    return notifier


@pytest.fixture
def orchestrator(sample_config, mock_feed_client, mock_notifier, cache_store):
    """Create orchestrator with mocked shell components and a fixed clock."""
    return Orchestrator(
        sample_config,
        feed_client=mock_feed_client,
        notifier=mock_notifier,
        cache_store=cache_store,
        clock=lambda: NOW,
    )


def seed_cache(cache_store: CacheFileStore, *entries: dict) -> None:
    """Write normalized entries into the cache file."""
    alerts = [normalize_entry(e) for e in entries]
    cache_store.save({a.id: a for a in alerts})


class TestNewAlerts:
    """Alerts not seen before."""

    def test_notifies_new_alert(self, orchestrator, mock_notifier, cache_store):
        """Empty cache and an important alert: notify as new, cache it."""
        result = orchestrator.process()

        assert [o.outcome for o in result.outcomes] == [Outcome.NOTIFIED_NEW]
        mock_notifier.notify.assert_called_once()
        assert list(cache_store.load()) == ["X1"]

    def test_cached_copy_equals_alert(self, orchestrator, cache_store):
        """The cache holds exactly the notified alert afterwards."""
        orchestrator.process()

        assert cache_store.load()["X1"] == normalize_entry(make_entry())

    def test_message_contents(self, orchestrator, mock_notifier):
        """The notifier receives id, title and details."""
        orchestrator.process()

        message = mock_notifier.notify.call_args[0][0]
        assert message["id"] == "X1"
        assert message["title"] == "Tornado Warning issued"
        assert message["details"] == "Tornado Warning. Expires October 17 at 2:00pm."

    def test_second_pass_is_silent(self, orchestrator, mock_notifier):
        """Running twice over the same feed notifies once."""
        orchestrator.process()
        result = orchestrator.process()

        assert mock_notifier.notify.call_count == 1
        assert [o.outcome for o in result.outcomes] == [Outcome.UNCHANGED]


class TestCachedAlerts:
    """Alerts already in the cache."""

    def test_unchanged_alert_is_skipped(self, orchestrator, mock_notifier, cache_store):
        """Cached with the same updated time: skip."""
        seed_cache(cache_store, make_entry())

        result = orchestrator.process()

        mock_notifier.notify.assert_not_called()
        assert result.outcomes[0].outcome is Outcome.UNCHANGED

    def test_cached_newer_sends_update(
        self, orchestrator, mock_feed_client, mock_notifier, cache_store
    ):
        """Cached copy newer than the feed's: notify as update."""
        seed_cache(cache_store, make_entry(updated=NOW - timedelta(minutes=5)))
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry(updated=NOW - timedelta(minutes=10))],
        )

        result = orchestrator.process()

        assert result.outcomes[0].outcome is Outcome.NOTIFIED_UPDATE
        message = mock_notifier.notify.call_args[0][0]
        assert message["details"].startswith("Updated: ")
        # Cache entry replaced with the incoming alert
        assert cache_store.load()["X1"].updated_at == NOW - timedelta(minutes=10)

    def test_incoming_newer_is_skipped(
        self, orchestrator, mock_feed_client, mock_notifier, cache_store
    ):
        """Feed copy newer than the cached one: skip, cache untouched."""
        seed_cache(cache_store, make_entry(updated=NOW - timedelta(minutes=10)))
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry(updated=NOW - timedelta(minutes=5))],
        )

        result = orchestrator.process()

        mock_notifier.notify.assert_not_called()
        assert result.outcomes[0].outcome is Outcome.UNCHANGED
        assert cache_store.load()["X1"].updated_at == NOW - timedelta(minutes=10)

    def test_updates_disabled(
        self, sample_config, mock_feed_client, mock_notifier, cache_store
    ):
        """With send_updates off, cached alerts are never re-sent."""
        sample_config.send_updates = False
        seed_cache(cache_store, make_entry(updated=NOW - timedelta(minutes=5)))
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry(updated=NOW - timedelta(minutes=10))],
        )
        orchestrator = Orchestrator(
            sample_config,
            feed_client=mock_feed_client,
            notifier=mock_notifier,
            cache_store=cache_store,
            clock=lambda: NOW,
        )

        orchestrator.process()

        mock_notifier.notify.assert_not_called()


class TestImportanceGate:
    """Alerts that fail the importance policy."""

    def test_exercise_not_notified(self, orchestrator, mock_feed_client, mock_notifier, cache_store):
        """status=Exercise: no decision, no notification, not cached."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry(status="Exercise")],
        )

        with patch("cap_alerts.orchestrator.decide") as mock_decide:
            result = orchestrator.process()

        mock_decide.assert_not_called()
        mock_notifier.notify.assert_not_called()
        assert result.outcomes[0].outcome is Outcome.NOT_IMPORTANT
        assert cache_store.load() == {}

    def test_expired_not_notified(self, orchestrator, mock_feed_client, mock_notifier):
        """Expired alerts are not important."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry(expires=NOW - timedelta(minutes=1))],
        )

        result = orchestrator.process()

        mock_notifier.notify.assert_not_called()
        assert result.outcomes[0].outcome is Outcome.NOT_IMPORTANT

    def test_malformed_entry_does_not_abort(self, orchestrator, mock_feed_client, mock_notifier):
        """A broken entry is skipped; later entries are still processed."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[{"id": "broken", "updated": "garbage"}, make_entry("X2")],
        )

        result = orchestrator.process()

        assert [o.outcome for o in result.outcomes] == [
            Outcome.NOT_IMPORTANT,
            Outcome.NOTIFIED_NEW,
        ]
        assert mock_notifier.notify.call_count == 1

    def test_entry_without_id_is_skipped_and_not_cached(
        self, orchestrator, mock_feed_client, mock_notifier, cache_store
    ):
        """An important entry lacking an id is never notified or cached."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry("X1"), make_entry("")],
        )

        result = orchestrator.process()

        assert [o.outcome for o in result.outcomes] == [
            Outcome.NOTIFIED_NEW,
            Outcome.MISSING_ID,
        ]
        assert list(cache_store.load()) == ["X1"]

    def test_entry_without_id_keeps_later_passes_silent(
        self, orchestrator, mock_feed_client, mock_notifier, cache_store
    ):
        """Repeated passes over a feed with an id-less entry notify once."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry("X1"), make_entry("")],
        )

        orchestrator.process()
        second = orchestrator.process()

        assert mock_notifier.notify.call_count == 1
        assert second.outcomes[0].outcome is Outcome.UNCHANGED
        assert "X1" in cache_store.load()


class TestFeedPlaceholder:
    """The feed's 'no active alerts' entry."""

    def test_placeholder_stops_iteration(self, orchestrator, mock_feed_client, mock_notifier):
        """Iteration stops at the entry whose ID is the feed URL."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[placeholder_entry(), make_entry("X9")],
        )

        result = orchestrator.process()

        assert result.outcomes == []
        mock_notifier.notify.assert_not_called()

    def test_placeholder_still_persists_cache(
        self, orchestrator, mock_feed_client, cache_store
    ):
        """The pass still trims and saves the cache."""
        seed_cache(cache_store, make_entry("OLD"))
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[placeholder_entry()],
        )

        result = orchestrator.process()

        assert result.cache_saved
        assert list(cache_store.load()) == ["OLD"]


class TestFeedUnavailable:
    """Feed fetch failures abort the pass."""

    def test_aborts_without_touching_cache(
        self, sample_config, mock_feed_client, mock_notifier, cache_path
    ):
        """Transport error: no cache read or write, no notifications."""
        mock_feed_client.fetch.side_effect = FeedUnavailableError("connection refused")
        cache_path.write_text('{"sentinel": "unchanged"}')
        store = Mock(wraps=CacheFileStore(cache_path))
        orchestrator = Orchestrator(
            sample_config,
            feed_client=mock_feed_client,
            notifier=mock_notifier,
            cache_store=store,
            clock=lambda: NOW,
        )

        result = orchestrator.process()

        assert result.aborted
        assert not result.success
        assert "connection refused" in result.errors[0]
        store.load.assert_not_called()
        store.save.assert_not_called()
        mock_notifier.notify.assert_not_called()
        assert cache_path.read_text() == '{"sentinel": "unchanged"}'

    def test_unexpected_fetch_error_aborts(self, orchestrator, mock_feed_client):
        """Any exception from the feed client aborts instead of escaping."""
        mock_feed_client.fetch.side_effect = RuntimeError("boom")

        result = orchestrator.process()

        assert result.aborted
        assert result.summary == "Aborted: feed unavailable"


class TestDeliveryFailures:
    """Notifier failures."""

    def test_failed_delivery_is_still_cached(self, orchestrator, mock_notifier, cache_store):
        """A failed alert is cached so it is not re-sent next pass."""
        mock_notifier.notify.return_value = NotifyResponse(
            success=False, status_code=500, error="Server error"
        )

        result = orchestrator.process()

        assert result.outcomes[0].delivered is False
        assert result.outcomes[0].error == "Server error"
        assert result.failed_deliveries == [result.outcomes[0]]
        assert not result.success
        assert "X1" in cache_store.load()

    def test_failure_does_not_block_other_alerts(
        self, orchestrator, mock_feed_client, mock_notifier
    ):
        """Later alerts are still sent after a failure."""
        mock_feed_client.fetch.return_value = FeedResult(
            feed_url=FEED_URL,
            entries=[make_entry("X1"), make_entry("X2")],
        )
        mock_notifier.notify.side_effect = [
            NotifyResponse(success=False, status_code=0, error="Request timed out"),
            NotifyResponse(success=True, status_code=200),
        ]

        result = orchestrator.process()

        assert [o.delivered for o in result.outcomes] == [False, True]

    def test_notifier_exception_is_contained(self, orchestrator, mock_notifier, cache_store):
        """An exception from the notifier becomes a failed delivery."""
        mock_notifier.notify.side_effect = RuntimeError("socket closed")

        result = orchestrator.process()

        assert result.outcomes[0].delivered is False
        assert result.outcomes[0].error == "socket closed"
        assert "X1" in cache_store.load()


class TestCacheBounds:
    """Cache trimming and persistence."""

    def test_trims_to_limit(self, orchestrator, mock_feed_client, cache_store):
        """Keeps only the newest max_cached_alerts alerts."""
        entries = [
            make_entry(f"A{i}", updated=NOW - timedelta(minutes=60 - i))
            for i in range(12)
        ]
        mock_feed_client.fetch.return_value = FeedResult(feed_url=FEED_URL, entries=entries)

        result = orchestrator.process()

        cached = cache_store.load()
        assert len(cached) == 10
        assert result.evicted_ids == {"A0", "A1"}

    def test_save_failure_reported(self, sample_config, mock_feed_client, mock_notifier):
        """A failed save is an error but the pass completes."""
        store = Mock()
        store.load.return_value = {}
        store.save.return_value = False
        orchestrator = Orchestrator(
            sample_config,
            feed_client=mock_feed_client,
            notifier=mock_notifier,
            cache_store=store,
            clock=lambda: NOW,
        )

        result = orchestrator.process()

        assert not result.cache_saved
        assert result.errors == ["Failed to save alert cache"]
        assert result.outcomes[0].delivered is True

    def test_corrupt_cache_treated_as_empty(
        self, orchestrator, mock_notifier, cache_path
    ):
        """An unreadable cache file behaves like an empty cache."""
        cache_path.write_text("{corrupt")

        result = orchestrator.process()

        assert result.outcomes[0].outcome is Outcome.NOTIFIED_NEW
        mock_notifier.notify.assert_called_once()


class TestLogging:
    """Logger injection."""

    def test_uses_given_logger(self, sample_config, mock_feed_client, mock_notifier, cache_store):
        """Decision points are reported through the injected logger."""
        log = Mock()
        orchestrator = Orchestrator(
            sample_config,
            feed_client=mock_feed_client,
            notifier=mock_notifier,
            cache_store=cache_store,
            log=log,
            clock=lambda: NOW,
        )

        orchestrator.process()

        assert orchestrator.log is log
        levels = [c.args[0] for c in log.log.call_args_list]
        assert logging.INFO in levels

    def test_level_creates_logger(self, sample_config):
        """A LogLevel is turned into a logger at that level."""
        orchestrator = Orchestrator(sample_config, log=LogLevel.WARNING)

        assert isinstance(orchestrator.log, logging.LoggerAdapter)
        assert orchestrator.log.level == logging.WARNING
        assert not orchestrator.log.isEnabledFor(logging.INFO)

    def test_levels_are_per_instance(self, sample_config):
        """A second orchestrator does not change the first one's level."""
        shared = logging.getLogger("cap_alerts.orchestrator")
        shared_level = shared.level

        verbose = Orchestrator(sample_config, log=LogLevel.DEBUG)
        quiet = Orchestrator(sample_config, log=LogLevel.ERROR)

        assert verbose.log is not quiet.log
        assert verbose.log.isEnabledFor(logging.DEBUG)
        assert not quiet.log.isEnabledFor(logging.WARNING)
        assert shared.level == shared_level

    def test_level_logger_emits_below_module_level(self, sample_config, caplog):
        """A DEBUG orchestrator logs debug records while the module logger stays quieter."""
        shared = logging.getLogger("cap_alerts.orchestrator")
        orchestrator = Orchestrator(sample_config, log=LogLevel.DEBUG)

        shared.setLevel(logging.WARNING)
        try:
            orchestrator.log.log(logging.DEBUG, "debug %s", "record")
        finally:
            shared.setLevel(logging.NOTSET)

        assert "debug record" in caplog.text

    def test_defaults_to_config_level(self, sample_config):
        """Without a log option, config.log_level is used."""
        sample_config.log_level = LogLevel.DEBUG

        orchestrator = Orchestrator(sample_config)

        assert orchestrator.log.level == logging.DEBUG


class TestProcessingResult:
    """Tests for ProcessingResult properties."""

    def test_summary(self):
        """Summary counts notifications and failures."""
        alert = Alert(id="X1")
        result = ProcessingResult(
            entries_fetched=3,
            outcomes=[
                EntryOutcome(alert=alert, outcome=Outcome.NOTIFIED_NEW, delivered=True),
                EntryOutcome(alert=alert, outcome=Outcome.NOTIFIED_UPDATE, delivered=False),
                EntryOutcome(alert=alert, outcome=Outcome.NOT_IMPORTANT),
            ],
            cache_saved=True,
        )

        assert result.summary == (
            "Fetched 3 entries, 2 notifications (1 delivered, 1 failed), cache saved"
        )
        assert len(result.notified) == 2
        assert not result.success

    def test_empty_success(self):
        """No outcomes and no errors is a success."""
        assert ProcessingResult(cache_saved=True).success

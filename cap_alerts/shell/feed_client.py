"""NWS CAP Feed Client - Imperative Shell.

This module handles HTTP communication with the National Weather Service
CAP alert feed and parses the Atom document with feedparser.
All I/O is contained here; business logic is in the core module.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import feedparser
import requests

from cap_alerts.core.config import USER_AGENT


logger = logging.getLogger(__name__)


# Atom feed of active CAP alerts for one zone or county
FEED_URL_TEMPLATE = "https://alerts.weather.gov/cap/wwaatmget.php?x={zone}&y=0"

# Default timeout for feed requests (seconds)
DEFAULT_TIMEOUT = 20


class FeedUnavailableError(Exception):
    """The feed could not be fetched or parsed. Aborts the polling pass."""


@dataclass
class FeedResult:
    """A fetched and parsed feed.

    Attributes:
        feed_url: URL the feed was requested from. The feed's
                  "no active alerts" placeholder entry uses it as its ID.
        entries: Raw feedparser entries, in feed order
    """
    feed_url: str
    entries: list[dict[str, Any]] = field(default_factory=list)


class NWSFeedClient:
    """Client for fetching CAP alerts from the NWS Atom feed.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        url_template: str = FEED_URL_TEMPLATE,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize feed client.

        Args:
            url_template: Feed URL with a {zone} placeholder
            timeout: Request timeout in seconds
        """
        self.url_template = url_template
        self.timeout = timeout

    def feed_url(self, zone: str) -> str:
        """Build the feed URL for a zone."""
        return self.url_template.format(zone=zone)

    def fetch(self, zone: str) -> FeedResult:
        """Fetch and parse the alert feed for a zone.

        This method performs HTTP I/O. One attempt, no retries.

        Args:
            zone: NWS zone or county ID

        Returns:
            FeedResult with the raw entries

        Raises:
            FeedUnavailableError: On transport error, timeout, non-200
                status, or a response that is not a parseable feed
        """
        url = self.feed_url(zone)

        logger.info("Fetching CAP feed", extra={"feed_url": url})

        try:
            response = requests.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
                allow_redirects=True,
            )
        except requests.Timeout as e:
            raise FeedUnavailableError(f"Feed request timed out: {url}") from e
        except requests.RequestException as e:
            raise FeedUnavailableError(f"Feed request failed: {e}") from e

        if response.status_code != 200:
            raise FeedUnavailableError(
                f"Feed returned HTTP {response.status_code}: {url}"
            )

        parsed = feedparser.parse(response.content)

        # bozo is also set for recoverable issues; only give up when
        # nothing usable came out of the document
        if parsed.bozo and not parsed.entries and not parsed.feed:
            raise FeedUnavailableError(
                f"Feed could not be parsed: {parsed.get('bozo_exception')}"
            )

        if parsed.bozo:
            logger.warning(
                "Feed parsing warning: %s",
                parsed.get("bozo_exception"),
            )

        entries = [dict(entry) for entry in parsed.entries]

        logger.info("Fetched %d entries from CAP feed", len(entries))

        return FeedResult(feed_url=url, entries=entries)

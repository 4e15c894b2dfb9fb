"""IFTTT Webhook Client - Imperative Shell.

This module handles HTTP communication with the IFTTT Maker webhook.
All I/O is contained here; message formatting is in the core module.
"""

import logging
from dataclasses import dataclass

import requests

from cap_alerts.core.config import USER_AGENT
from cap_alerts.core.formatter import format_ifttt_payload


logger = logging.getLogger(__name__)


IFTTT_URL_TEMPLATE = "https://maker.ifttt.com/trigger/{event}/with/key/{key}"

# Default timeout for webhook requests (seconds)
DEFAULT_TIMEOUT = 20


@dataclass
class NotifyResponse:
    """Response from the notification webhook.

    Attributes:
        success: Whether the message was delivered successfully
        status_code: HTTP status code (0 if no response)
        error: Error message if failed
    """
    success: bool
    status_code: int
    error: str | None = None


class IftttNotifier:
    """Sends alert messages to an IFTTT Maker webhook.

    This is part of the imperative shell - it handles HTTP I/O.
    One delivery attempt per message; failures are reported, not raised.
    """

    def __init__(
        self,
        event: str,
        key: str,
        timeout: int = DEFAULT_TIMEOUT,
        url_template: str = IFTTT_URL_TEMPLATE,
    ) -> None:
        """Initialize IFTTT notifier.

        Args:
            event: IFTTT Maker event name
            key: IFTTT Maker webhook key
            timeout: Request timeout in seconds
            url_template: Webhook URL with {event} and {key} placeholders
        """
        self.event = event
        self.key = key
        self.timeout = timeout
        self.url_template = url_template

    @property
    def webhook_url(self) -> str:
        """Webhook URL for the configured event and key."""
        return self.url_template.format(event=self.event, key=self.key)

    def notify(self, message: dict[str, str]) -> NotifyResponse:
        """Send a message to the webhook.

        This method performs HTTP I/O.

        Args:
            message: Message with 'id', 'title' and 'details' (from formatter)

        Returns:
            NotifyResponse indicating success or failure
        """
        logger.info("Sending alert %s to IFTTT event %s", message.get("id"), self.event)

        try:
            response = requests.post(
                self.webhook_url,
                json=format_ifttt_payload(message),
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": USER_AGENT,
                },
            )

            if response.status_code == 200:
                logger.info("Alert %s delivered to IFTTT", message.get("id"))
                return NotifyResponse(
                    success=True,
                    status_code=response.status_code,
                )
            else:
                error_text = response.text
                logger.warning(
                    "IFTTT webhook returned non-200: %d - %s",
                    response.status_code,
                    error_text,
                )
                return NotifyResponse(
                    success=False,
                    status_code=response.status_code,
                    error=error_text or f"HTTP {response.status_code}",
                )

        except requests.Timeout:
            logger.error("IFTTT webhook request timed out")
            return NotifyResponse(
                success=False,
                status_code=0,
                error="Request timed out",
            )
        except requests.RequestException as e:
            logger.error("IFTTT webhook request failed: %s", str(e))
            return NotifyResponse(
                success=False,
                status_code=0,
                error=str(e),
            )

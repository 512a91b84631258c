"""
Webhook notification channel.

POSTs a JSON payload to an HTTP(S) endpoint. Connection errors,
timeouts and 5xx responses are retried with exponential backoff;
4xx responses are not.
"""

import logging

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from dumpkeeper.core.exceptions import NotificationError
from dumpkeeper.notifications.channels.base import NotificationChannel

logger = logging.getLogger(__name__)


class _TransientWebhookError(Exception):
    """Failure worth another attempt."""


class WebhookChannel(NotificationChannel):
    """Notification delivery via HTTP webhooks."""

    channel_type = "webhook"

    def __init__(
        self,
        url: str,
        timeout_seconds: int = 30,
        max_retries: int = 3,
        retry_backoff_seconds: float = 1.0,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ):
        """
        Initialize webhook channel.

        Args:
            url: Endpoint receiving the POST
            timeout_seconds: Per-request timeout
            max_retries: Total attempts for transient failures
            retry_backoff_seconds: Multiplier for the exponential backoff
            headers: Extra request headers
            session: Requests session to use (default: a new one)
        """
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self._session = session or requests.Session()

    def validate_config(self) -> bool:
        """Validate webhook configuration."""
        return bool(self.url) and self.url.startswith(("http://", "https://"))

    def _post(self, payload: dict[str, str]) -> requests.Response:
        try:
            response = self._session.post(
                self.url,
                json=payload,
                headers=self.headers,
                timeout=self.timeout_seconds,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise _TransientWebhookError(str(e)) from e

        if response.status_code >= 500:
            raise _TransientWebhookError(f"HTTP {response.status_code}: {response.text[:200]}")
        return response

    def send(self, subject: str, body: str, recipient: str) -> None:
        if not self.validate_config():
            raise NotificationError("Invalid webhook configuration", channel=self.channel_type)

        payload = {"subject": subject, "body": body, "recipient": recipient}
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff_seconds, max=30),
            retry=retry_if_exception_type(_TransientWebhookError),
            reraise=True,
        )

        try:
            response = retrying(self._post, payload)
        except _TransientWebhookError as e:
            raise NotificationError(
                f"Webhook delivery failed after {self.max_retries} attempt(s): {e}",
                channel=self.channel_type,
                retryable=True,
            ) from e
        except requests.exceptions.RequestException as e:
            raise NotificationError(f"Request error: {e}", channel=self.channel_type) from e

        if response.status_code >= 400:
            raise NotificationError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                channel=self.channel_type,
                details={"status_code": response.status_code},
            )

        logger.debug(f"Webhook notification delivered ({response.status_code})")

    def close(self) -> None:
        """Close the requests session."""
        self._session.close()

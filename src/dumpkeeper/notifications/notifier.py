"""
Run outcome notifier.

Fire-and-forget: notify() never raises. A notification failure must
not change the outcome or exit status of a backup run.
"""

import logging

from dumpkeeper.config import NotificationConfig
from dumpkeeper.core.exceptions import NotificationError
from dumpkeeper.core.models import RunResult
from dumpkeeper.notifications.channels import LogChannel, NotificationChannel
from dumpkeeper.notifications.templates import render_body, render_subject

logger = logging.getLogger(__name__)


class Notifier:
    """Reports run results to an operator channel when enabled."""

    def __init__(
        self,
        config: NotificationConfig | None = None,
        channel: NotificationChannel | None = None,
    ):
        """
        Initialize the notifier.

        Args:
            config: Enable flag and recipient
            channel: Delivery channel (default: LogChannel)
        """
        self._config = config or NotificationConfig()
        self._channel = channel or LogChannel()

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    def notify(self, result: RunResult, database: str = "") -> bool:
        """
        Send a run result through the channel.

        Args:
            result: Outcome of the run
            database: Display name of the backed-up database

        Returns:
            True if a notification was delivered, False if disabled or failed
        """
        if not self._config.enabled:
            return False

        try:
            subject = render_subject(result, database)
            body = render_body(result, database)
            self._channel.send(subject, body, self._config.recipient)
        except NotificationError as e:
            logger.warning(f"Notification via {self._channel.channel_type} failed: {e}")
            return False
        except Exception as e:
            logger.warning(
                f"Notification via {self._channel.channel_type} failed unexpectedly: "
                f"{e.__class__.__name__}: {e}"
            )
            return False

        logger.info(f"Notification sent: {'SUCCESS' if result.success else 'FAILURE'}")
        return True

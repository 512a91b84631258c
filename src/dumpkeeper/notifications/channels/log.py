"""
Log notification channel.

Writes notifications to the application log. This is the default
channel: a stand-in until a real delivery channel is configured.
"""

import logging

from dumpkeeper.notifications.channels.base import NotificationChannel

logger = logging.getLogger(__name__)


class LogChannel(NotificationChannel):
    """Notification delivery to the log."""

    channel_type = "log"

    def __init__(self, level: int = logging.INFO):
        self._level = level

    def send(self, subject: str, body: str, recipient: str) -> None:
        logger.log(self._level, f"Notification for {recipient}: {subject}")
        for line in body.splitlines():
            logger.log(self._level, f"  {line}")

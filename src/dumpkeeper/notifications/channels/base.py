"""
Base channel class for notification delivery.

All notification channels must inherit from NotificationChannel and
implement send(). A real channel (email, webhook, chat) can be
substituted without touching the orchestrator.
"""

from abc import ABC, abstractmethod


class NotificationChannel(ABC):
    """
    Abstract base class for notification channels.

    Implementations raise NotificationError on delivery failure; the
    Notifier is responsible for containing it.
    """

    channel_type: str = "base"

    @abstractmethod
    def send(self, subject: str, body: str, recipient: str) -> None:
        """
        Deliver one message.

        Args:
            subject: Short summary line
            body: Full message text
            recipient: Channel-specific address (e.g. an email address)

        Raises:
            NotificationError: If delivery fails
        """

    def validate_config(self) -> bool:
        """Check channel configuration; channels without settings are always valid."""
        return True

    def close(self) -> None:
        """Release channel resources."""

"""
Notification channel implementations for dumpkeeper.

Provides delivery to the log, email and webhooks.
"""

import logging

from dumpkeeper.config import NotificationChannelType, NotificationConfig
from dumpkeeper.notifications.channels.base import NotificationChannel
from dumpkeeper.notifications.channels.email import EmailChannel
from dumpkeeper.notifications.channels.log import LogChannel
from dumpkeeper.notifications.channels.webhook import WebhookChannel

__all__ = [
    "NotificationChannel",
    "LogChannel",
    "EmailChannel",
    "WebhookChannel",
    "build_channel",
]

logger = logging.getLogger(__name__)


def build_channel(config: NotificationConfig) -> NotificationChannel:
    """
    Build the channel selected by configuration.

    Disabled notifications always get the LogChannel, whatever channel is
    selected. A channel with incomplete settings is still returned; its
    send() fails and the Notifier contains the error, so a notification
    setting never prevents a dump.
    """
    if not config.enabled:
        return LogChannel()

    if config.channel is NotificationChannelType.EMAIL:
        channel: NotificationChannel = EmailChannel(config)
    elif config.channel is NotificationChannelType.WEBHOOK:
        channel = WebhookChannel(
            config.webhook_url or "",
            timeout_seconds=config.timeout_seconds,
            max_retries=config.max_retries,
        )
    else:
        channel = LogChannel()

    if not channel.validate_config():
        logger.warning(
            f"Notification channel {channel.channel_type} is misconfigured; "
            f"notifications will fail until it is fixed"
        )
    return channel

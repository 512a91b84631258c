"""
dumpkeeper Notifications Module.

Reports the outcome of each backup run through a pluggable channel.

Example:
    >>> notifier = Notifier(config, channel=build_channel(config))
    >>> notifier.notify(result, database="shop@db:5432")
"""

from dumpkeeper.notifications.channels import (
    EmailChannel,
    LogChannel,
    NotificationChannel,
    WebhookChannel,
    build_channel,
)
from dumpkeeper.notifications.notifier import Notifier
from dumpkeeper.notifications.templates import render_body, render_subject

__all__ = [
    "Notifier",
    "NotificationChannel",
    "LogChannel",
    "EmailChannel",
    "WebhookChannel",
    "build_channel",
    "render_subject",
    "render_body",
]

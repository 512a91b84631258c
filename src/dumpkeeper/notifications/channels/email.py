"""
Email notification channel.

Delivers notifications over SMTP with optional STARTTLS and
authentication. One connection is opened per message; runs send at
most one notification.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, formatdate

from dumpkeeper.config import NotificationConfig
from dumpkeeper.core.exceptions import NotificationError
from dumpkeeper.notifications.channels.base import NotificationChannel

logger = logging.getLogger(__name__)


class EmailChannel(NotificationChannel):
    """
    Notification delivery via email.

    Features:
    - SMTP delivery with STARTTLS
    - Optional authentication
    - Plain text body
    """

    channel_type = "email"

    def __init__(self, config: NotificationConfig, from_name: str = "dumpkeeper"):
        """
        Initialize email channel.

        Args:
            config: Notification settings holding the SMTP parameters
            from_name: Display name of the sender
        """
        self._config = config
        self._from_name = from_name

    def validate_config(self) -> bool:
        """Validate email configuration."""
        if not self._config.smtp_host:
            return False
        if not self._config.from_address or "@" not in self._config.from_address:
            return False
        return True

    def _prepare_message(self, subject: str, body: str, recipient: str) -> EmailMessage:
        """Prepare email message."""
        msg = EmailMessage()
        msg["To"] = recipient
        msg["From"] = formataddr((self._from_name, self._config.from_address))
        msg["Subject"] = subject
        msg["Date"] = formatdate(localtime=True)
        msg.set_content(body)
        return msg

    def send(self, subject: str, body: str, recipient: str) -> None:
        if not self.validate_config():
            raise NotificationError("Invalid email configuration", channel=self.channel_type)
        if "@" not in recipient:
            raise NotificationError(f"Invalid recipient address: {recipient}", channel=self.channel_type)

        config = self._config
        message = self._prepare_message(subject, body, recipient)

        try:
            with smtplib.SMTP(config.smtp_host, config.smtp_port, timeout=config.timeout_seconds) as smtp:
                if config.smtp_use_tls:
                    smtp.starttls()
                if config.smtp_username and config.smtp_password:
                    smtp.login(config.smtp_username, config.smtp_password)
                smtp.send_message(message, to_addrs=[recipient])
        except smtplib.SMTPAuthenticationError as e:
            raise NotificationError(f"SMTP authentication failed: {e}", channel=self.channel_type) from e
        except smtplib.SMTPRecipientsRefused as e:
            raise NotificationError(f"Recipients refused: {e}", channel=self.channel_type) from e
        except smtplib.SMTPException as e:
            raise NotificationError(f"SMTP error: {e}", channel=self.channel_type, retryable=True) from e
        except OSError as e:
            raise NotificationError(f"Connection error: {e}", channel=self.channel_type, retryable=True) from e

        logger.debug(f"Email notification sent to {recipient}")

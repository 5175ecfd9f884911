"""Email channel registry.

Provides singleton access to the email adapter. ``NOTIFICATION_CHANNEL=fake``
selects the in-memory adapter (tests); the default logs messages.
"""

import os

from notifications.channel.email_port import EmailPort

_email_channel: EmailPort | None = None


def get_email_channel() -> EmailPort:
    """Return the configured email adapter (singleton)."""
    global _email_channel
    if _email_channel is None:
        channel = os.getenv("NOTIFICATION_CHANNEL", "log").lower()
        if channel == "fake":
            from notifications.channel.fake_email import FakeEmailAdapter

            _email_channel = FakeEmailAdapter()
        elif channel == "log":
            from notifications.channel.log_email import LogEmailAdapter

            _email_channel = LogEmailAdapter()
        else:
            raise ValueError(f"Unknown notification channel: {channel}")
    return _email_channel


def set_email_channel(adapter: EmailPort) -> None:
    global _email_channel
    _email_channel = adapter


def reset_channels():
    """Reset the channel singleton (useful for testing)."""
    global _email_channel
    _email_channel = None

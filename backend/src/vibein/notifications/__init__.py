"""Notification side-channel."""

from vibein.notifications.email import EmailNotifier, NullNotifier

__all__ = ["EmailNotifier", "NullNotifier"]

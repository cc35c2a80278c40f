"""Exceptions for chat notifications."""


class NotificationError(Exception):
    """Base exception for notification delivery errors."""

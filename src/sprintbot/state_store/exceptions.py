"""Custom exceptions for State Store."""


class StateStoreError(Exception):
    """Base exception for State Store errors."""


class DocumentCorruptError(StateStoreError):
    """Stored document does not match its expected shape."""

"""State Store - Persistent JSON documents for the active sprint, snapshots and history."""

from sprintbot.state_store.database import Database
from sprintbot.state_store.exceptions import DocumentCorruptError, StateStoreError
from sprintbot.state_store.models import Document
from sprintbot.state_store.store import (
    ACTIVE_SPRINT_KEY,
    HISTORY_KEY,
    MEMBERS_KEY,
    SNAPSHOTS_KEY,
    InMemoryKeyValueStore,
    KeyValueStore,
    SprintStore,
    SqlKeyValueStore,
)

__all__ = [
    "ACTIVE_SPRINT_KEY",
    "Database",
    "Document",
    "DocumentCorruptError",
    "HISTORY_KEY",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "MEMBERS_KEY",
    "SNAPSHOTS_KEY",
    "SprintStore",
    "SqlKeyValueStore",
    "StateStoreError",
]

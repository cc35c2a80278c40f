"""Key-value document storage and typed sprint documents on top of it."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from sprintbot.sprint.models import DailyTicketSnapshots, SprintContext, SprintHistory
from sprintbot.state_store.database import Database
from sprintbot.state_store.exceptions import DocumentCorruptError, StateStoreError
from sprintbot.state_store.models import Document

logger = logging.getLogger("sprintbot.state_store")

ACTIVE_SPRINT_KEY = "active_sprint.json"
SNAPSHOTS_KEY = "ticket_snapshots.json"
HISTORY_KEY = "sprint_history.json"
MEMBERS_KEY = "sprint_members.json"

ModelT = TypeVar("ModelT", bound=BaseModel)


class KeyValueStore(Protocol):
    """JSON documents addressed by key."""

    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class SqlKeyValueStore:
    """Key-value store backed by the ``documents`` table."""

    def __init__(self, db: Database) -> None:
        """Initialize the store and create its table if needed.

        Args:
            db: Database connection manager.
        """
        self._db = db
        self._db.create_tables()

    def get(self, key: str) -> Any | None:
        """Get the document stored under ``key``.

        Returns:
            Decoded JSON value, or None if the key is absent.

        Raises:
            StateStoreError: If the database cannot be read.
            DocumentCorruptError: If the stored value is not valid JSON.
        """
        session = self._db.get_session()
        try:
            value = session.execute(select(Document.value).where(Document.key == key)).scalar()
        except SQLAlchemyError as e:
            raise StateStoreError(f"Failed to read {key}: {e}") from e
        finally:
            session.close()

        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise DocumentCorruptError(f"Document {key} is not valid JSON") from e

    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous document.

        Raises:
            StateStoreError: If the write fails.
        """
        encoded = json.dumps(value)
        session = self._db.get_session()
        try:
            session.merge(Document(key=key, value=encoded, updated_at=datetime.now(UTC)))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StateStoreError(f"Failed to write {key}: {e}") from e
        finally:
            session.close()

    def delete(self, key: str) -> None:
        """Delete the document under ``key``. Missing keys are ignored.

        Raises:
            StateStoreError: If the delete fails.
        """
        session = self._db.get_session()
        try:
            document = session.get(Document, key)
            if document is not None:
                session.delete(document)
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StateStoreError(f"Failed to delete {key}: {e}") from e
        finally:
            session.close()


class InMemoryKeyValueStore:
    """Dict-backed key-value store for tests and local runs."""

    def __init__(self, documents: dict[str, Any] | None = None) -> None:
        self.documents: dict[str, str] = {}
        for key, value in (documents or {}).items():
            self.put(key, value)

    def get(self, key: str) -> Any | None:
        encoded = self.documents.get(key)
        return None if encoded is None else json.loads(encoded)

    def put(self, key: str, value: Any) -> None:
        self.documents[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self.documents.pop(key, None)


class SprintStore:
    """Typed access to the sprint documents.

    Each document is read and written independently; there is no
    transaction spanning keys.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _load(self, key: str, model: type[ModelT]) -> ModelT | None:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            raise DocumentCorruptError(f"Document {key} is invalid: {e}") from e

    def _save(self, key: str, document: BaseModel) -> None:
        self.store.put(key, document.model_dump(mode="json"))
        logger.info("Wrote %s", key)

    # --- Active sprint ---

    def get_active_sprint(self) -> SprintContext | None:
        return self._load(ACTIVE_SPRINT_KEY, SprintContext)

    def put_active_sprint(self, context: SprintContext) -> None:
        self._save(ACTIVE_SPRINT_KEY, context)

    def clear_active_sprint(self) -> None:
        self.store.delete(ACTIVE_SPRINT_KEY)
        logger.info("Cleared %s", ACTIVE_SPRINT_KEY)

    # --- Daily snapshots ---

    def get_snapshots(self) -> DailyTicketSnapshots:
        """Get the snapshot set, empty if none was stored yet."""
        return self._load(SNAPSHOTS_KEY, DailyTicketSnapshots) or DailyTicketSnapshots()

    def put_snapshots(self, snapshots: DailyTicketSnapshots) -> None:
        self._save(SNAPSHOTS_KEY, snapshots)

    # --- History ---

    def get_history(self) -> SprintHistory:
        """Get closed sprints, empty if none was stored yet."""
        return self._load(HISTORY_KEY, SprintHistory) or SprintHistory()

    def put_history(self, history: SprintHistory) -> None:
        self._save(HISTORY_KEY, history)

    # --- Member mapping ---

    def get_members(self) -> dict[str, str]:
        """Get the tracker member ID to chat user ID mapping.

        Raises:
            DocumentCorruptError: If the stored mapping is not an object of strings.
        """
        raw = self.store.get(MEMBERS_KEY)
        if raw is None:
            return {}
        if not isinstance(raw, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
        ):
            raise DocumentCorruptError(f"Document {MEMBERS_KEY} must map strings to strings")
        return dict(raw)

    def put_members(self, members: dict[str, str]) -> None:
        self.store.put(MEMBERS_KEY, dict(members))
        logger.info("Wrote %s (%d members)", MEMBERS_KEY, len(members))

from __future__ import annotations

import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ValidationError
from sqlmodel import Field, SQLModel

from taskpro.client.errors import StorageError
from taskpro.client.storage import KeyValueStorage
from taskpro.models import get_utc_now

logger = logging.getLogger(__name__)

PENDING_KEY = "pendingSync"


class OperationType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class PendingOperation(SQLModel):
    """A mutation that has not been confirmed by the server yet"""

    id: str  # target task id
    type: OperationType
    data: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=get_utc_now)


class PendingQueue:
    """
    Persisted FIFO of pending mutations.

    Entries are appended and removed, never edited. Like LocalCache, storage
    faults are logged and absorbed: reads fall back to an empty queue and
    failed writes are lost.
    """

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    def list(self) -> list[PendingOperation]:
        try:
            raw = self._storage.get(PENDING_KEY)
            if raw is None:
                return []
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError(f"expected a list, got {type(items).__name__}")
            return [PendingOperation.model_validate(item) for item in items]
        except (StorageError, ValueError, ValidationError) as e:
            logger.error(f"Error reading pending operations: {e}")
            return []

    def _save(self, operations: list[PendingOperation]) -> None:
        data = json.dumps([op.model_dump(mode="json") for op in operations])
        self._storage.set(PENDING_KEY, data)

    def enqueue(
        self,
        task_id: str,
        type: OperationType,
        data: dict[str, Any] | None = None,
    ) -> PendingOperation:
        operation = PendingOperation(id=task_id, type=type, data=data)
        try:
            self._save([*self.list(), operation])
            logger.debug(f"Queued {operation.type.value} for {task_id}")
        except StorageError as e:
            logger.error(f"Error adding pending operation: {e}")
        return operation

    def remove(self, task_id: str) -> None:
        """
        Drop every entry targeting ``task_id``.

        Removal is by task id, not by entry: a queued update and a queued
        delete for the same task both go when either one replays.
        """
        try:
            self._save([op for op in self.list() if op.id != task_id])
        except StorageError as e:
            logger.error(f"Error removing pending operation: {e}")

    def clear(self) -> None:
        try:
            self._storage.remove(PENDING_KEY)
        except StorageError as e:
            logger.error(f"Error clearing pending operations: {e}")

    def __len__(self) -> int:
        return len(self.list())

import json
import logging
from datetime import datetime

from pydantic import ValidationError

from taskpro.client.errors import StorageError
from taskpro.client.storage import KeyValueStorage
from taskpro.models import Task, get_utc_now

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
LAST_SYNC_KEY = "lastSync"


class LocalCache:
    """
    Persisted snapshot of the last known task list.

    Reads never fail: a missing, corrupt or unreachable snapshot reads as
    empty. Writes that the storage rejects are logged and dropped.
    """

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    def read_all(self) -> list[Task]:
        try:
            raw = self._storage.get(TASKS_KEY)
            if raw is None:
                return []
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError(f"expected a list, got {type(items).__name__}")
            return [Task.model_validate(item) for item in items]
        except (StorageError, ValueError, ValidationError) as e:
            logger.error(f"Error reading tasks from cache: {e}")
            return []

    def write_all(self, tasks: list[Task]) -> None:
        """Replace the whole snapshot and stamp the last sync time."""
        try:
            data = json.dumps([task.model_dump(mode="json") for task in tasks])
            self._storage.set(TASKS_KEY, data)
            self._storage.set(LAST_SYNC_KEY, get_utc_now().isoformat())
        except StorageError as e:
            logger.error(f"Error saving tasks to cache: {e}")

    def last_sync_time(self) -> datetime | None:
        try:
            raw = self._storage.get(LAST_SYNC_KEY)
            return datetime.fromisoformat(raw) if raw else None
        except (StorageError, ValueError) as e:
            logger.error(f"Error reading last sync time: {e}")
            return None

    def clear(self) -> None:
        try:
            self._storage.remove(TASKS_KEY)
            self._storage.remove(LAST_SYNC_KEY)
        except StorageError as e:
            logger.error(f"Error clearing cache: {e}")

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self.read_all() if t.id == task_id), None)

    def upsert(self, task: Task) -> None:
        tasks = self.read_all()
        for index, cached in enumerate(tasks):
            if cached.id == task.id:
                tasks[index] = task
                break
        else:
            tasks.append(task)
        self.write_all(tasks)

    def replace(self, task: Task) -> bool:
        """Swap in ``task`` only if its id is already cached."""
        tasks = self.read_all()
        for index, cached in enumerate(tasks):
            if cached.id == task.id:
                tasks[index] = task
                self.write_all(tasks)
                return True
        return False

    def discard(self, task_id: str) -> None:
        self.write_all([t for t in self.read_all() if t.id != task_id])

import itertools

from taskpro.models import Task, TaskCreate, get_utc_now


class TaskStore:
    """Map-backed task storage, one instance per API process"""

    def __init__(self):
        self._tasks: dict[str, Task] = {}
        self._ids = itertools.count(1)

    def _next_id(self) -> str:
        return f"task-{next(self._ids)}"

    def create(self, task_data: TaskCreate) -> Task:
        now = get_utc_now()
        task = Task(
            id=self._next_id(),
            **task_data.model_dump(),
            created_at=now,
            updated_at=now,
        )
        self._tasks[task.id] = task
        return task

    def find_all(self) -> list[Task]:
        return list(self._tasks.values())

    def find_by_id(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def update(self, task_id: str, changes: dict) -> Task | None:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        # id is never taken from the payload
        changes = {k: v for k, v in changes.items() if k != "id"}
        updated = task.model_copy(update={**changes, "updated_at": get_utc_now()})
        self._tasks[task_id] = updated
        return updated

    def delete(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None

    def clear(self):
        self._tasks.clear()
        self._ids = itertools.count(1)


# Store instance (singleton per worker)
task_store = TaskStore()


# Dependency for getting the store
def get_store() -> TaskStore:
    return task_store

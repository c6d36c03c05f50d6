from taskpro.models import Task, TaskCreate, TaskStatus, TaskUpdate
from taskpro.store import TaskStore


class CompletedTaskEditError(Exception):
    """Raised when a completed task is edited without reopening it"""


class TaskService:
    @staticmethod
    def create_task(task_data: TaskCreate, store: TaskStore) -> Task:
        return store.create(task_data)

    @staticmethod
    def get_all_tasks(store: TaskStore) -> list[Task]:
        return store.find_all()

    @staticmethod
    def get_task(task_id: str, store: TaskStore) -> Task | None:
        return store.find_by_id(task_id)

    @staticmethod
    def update_task(task_id: str, task_data: TaskUpdate, store: TaskStore):
        task = store.find_by_id(task_id)
        if not task:
            return None
        changes = task_data.changes()
        # reopening (status moves away from COMPLETED) is the only edit allowed
        if task.status == TaskStatus.COMPLETED and changes.get(
            "status", TaskStatus.COMPLETED
        ) == TaskStatus.COMPLETED:
            raise CompletedTaskEditError(
                "Cannot edit a completed task. "
                "Please reopen the task first by changing its status."
            )
        return store.update(task_id, changes)

    @staticmethod
    def delete_task(task_id: str, store: TaskStore) -> bool:
        return store.delete(task_id)

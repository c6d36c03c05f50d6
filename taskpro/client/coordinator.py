import logging
import time
import uuid
from dataclasses import dataclass

from taskpro.client.errors import RemoteUnavailable
from taskpro.client.local_cache import LocalCache
from taskpro.client.pending_queue import OperationType, PendingOperation, PendingQueue
from taskpro.client.remote import RemoteTaskApi
from taskpro.client.result import Failed, Result
from taskpro.models import Task, TaskCreate, TaskUpdate, get_utc_now

logger = logging.getLogger(__name__)


def make_temp_id() -> str:
    # millisecond clock plus a random suffix: two creates in the same ms differ
    return f"temp_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


@dataclass
class SyncReport:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0  # dropped from the queue by an earlier success for the same id
    remaining: int = 0
    refreshed: bool = False


class SyncCoordinator:
    """
    Remote-first task operations with an optimistic offline fallback.

    Each mutating call tries the API. If that fails the mutation is applied
    to the local cache, queued for replay, and RemoteUnavailable is raised
    so the caller can tell the user. The cache write always happens before
    the enqueue, and both before the raise.
    """

    def __init__(self, api: RemoteTaskApi, cache: LocalCache, queue: PendingQueue):
        self.api = api
        self.cache = cache
        self.queue = queue

    async def get_all(self) -> list[Task]:
        result = await self.api.list_tasks()
        if isinstance(result, Failed):
            logger.warning(f"Failed to fetch tasks from API, using cached data: {result}")
            return self.cache.read_all()
        self.cache.write_all(result.value)
        return result.value

    async def get(self, task_id: str) -> Task:
        result = await self.api.get_task(task_id)
        if not isinstance(result, Failed):
            return result.value
        task = self.cache.find(task_id)
        if task is None:
            raise RemoteUnavailable(result)
        return task

    async def create(self, data: TaskCreate) -> Task:
        payload = data.model_dump(mode="json", exclude_unset=True)
        result = await self.api.create_task(payload)
        if not isinstance(result, Failed):
            self.cache.upsert(result.value)
            return result.value

        now = get_utc_now()
        provisional = Task(
            id=make_temp_id(),
            **data.model_dump(),
            created_at=now,
            updated_at=now,
        )
        self.cache.upsert(provisional)
        self.queue.enqueue(provisional.id, OperationType.CREATE, payload)
        logger.info(f"Create queued offline as {provisional.id}: {result}")
        raise RemoteUnavailable(result)

    async def update(self, task_id: str, data: TaskUpdate) -> Task:
        payload = data.changes(mode="json")
        result = await self.api.update_task(task_id, payload)
        if not isinstance(result, Failed):
            self.cache.replace(result.value)
            return result.value

        cached = self.cache.find(task_id)
        if cached is not None:
            self.cache.replace(
                cached.model_copy(update={**data.changes(), "updated_at": get_utc_now()})
            )
        self.queue.enqueue(task_id, OperationType.UPDATE, payload)
        logger.info(f"Update of {task_id} queued offline: {result}")
        raise RemoteUnavailable(result)

    async def delete(self, task_id: str) -> None:
        result = await self.api.delete_task(task_id)
        self.cache.discard(task_id)
        if not isinstance(result, Failed):
            return

        self.queue.enqueue(task_id, OperationType.DELETE)
        logger.info(f"Delete of {task_id} queued offline: {result}")
        raise RemoteUnavailable(result)

    async def _replay(self, operation: PendingOperation) -> Result:
        if operation.type == OperationType.CREATE:
            return await self.api.create_task(operation.data or {})
        if operation.type == OperationType.UPDATE:
            return await self.api.update_task(operation.id, operation.data or {})
        return await self.api.delete_task(operation.id)

    async def sync(self) -> SyncReport:
        """
        Replay the pending queue once, oldest first.

        Successful entries are removed by task id, taking any later entries
        for the same id with them; those are skipped, not replayed. Failed
        ones stay for the next pass. There is no retry, backoff or early
        abort. If anything was pending, the cache is then overwritten with a
        fresh server listing.
        """
        pending = self.queue.list()
        report = SyncReport(attempted=len(pending))
        synced_ids: set[str] = set()

        for operation in pending:
            if operation.id in synced_ids:
                report.skipped += 1
                continue
            result = await self._replay(operation)
            if isinstance(result, Failed):
                report.failed += 1
                logger.warning(
                    f"Failed to sync {operation.type.value} for {operation.id}: {result}"
                )
                continue
            report.succeeded += 1
            self.queue.remove(operation.id)
            synced_ids.add(operation.id)

        if pending:
            refreshed = await self.api.list_tasks()
            if isinstance(refreshed, Failed):
                logger.warning(f"Post-sync refresh failed, cache left as is: {refreshed}")
            else:
                self.cache.write_all(refreshed.value)
                report.refreshed = True

        report.remaining = len(self.queue)
        if pending:
            logger.info(
                f"Sync pass done: {report.succeeded} synced, "
                f"{report.failed} failed, {report.remaining} pending"
            )
        return report

# tests/test_coordinator.py

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from taskpro.client.coordinator import SyncCoordinator, make_temp_id
from taskpro.client.errors import RemoteUnavailable
from taskpro.client.local_cache import LocalCache
from taskpro.client.pending_queue import OperationType, PendingQueue
from taskpro.models import TaskCreate, TaskPriority, TaskStatus, TaskUpdate

from .fakes import FakeRemoteApi

LONG_AGO = datetime(2020, 1, 1, tzinfo=timezone.utc)


def _dump(tasks) -> list[dict]:
    return [t.model_dump() for t in tasks]


def _new(title: str = "Plan sprint", **fields) -> TaskCreate:
    return TaskCreate(title=title, description="Agree on the sprint goals", **fields)


@pytest.mark.asyncio
async def test_online_calls_keep_cache_equal_to_server(
    coordinator: SyncCoordinator, remote: FakeRemoteApi, cache: LocalCache
) -> None:
    async def assert_mirrors_server() -> None:
        assert _dump(cache.read_all()) == _dump(remote.tasks.values())

    first = await coordinator.create(_new("First"))
    await assert_mirrors_server()
    second = await coordinator.create(_new("Second"))
    await assert_mirrors_server()

    await coordinator.update(first.id, TaskUpdate(status=TaskStatus.IN_PROGRESS))
    await assert_mirrors_server()

    await coordinator.get_all()
    await assert_mirrors_server()

    await coordinator.delete(second.id)
    await assert_mirrors_server()
    assert [t.id for t in cache.read_all()] == [first.id]


@pytest.mark.asyncio
async def test_get_all_falls_back_to_cache(
    coordinator: SyncCoordinator, remote: FakeRemoteApi
) -> None:
    remote.seed(title="Cached one")
    online = await coordinator.get_all()

    remote.online = False
    remote.seed(title="Server only")

    assert _dump(await coordinator.get_all()) == _dump(online)


@pytest.mark.asyncio
async def test_get_prefers_server_then_cache(
    coordinator: SyncCoordinator, remote: FakeRemoteApi
) -> None:
    task = remote.seed()
    await coordinator.get_all()

    assert (await coordinator.get(task.id)).model_dump() == task.model_dump()

    remote.online = False
    assert (await coordinator.get(task.id)).model_dump() == task.model_dump()

    with pytest.raises(RemoteUnavailable) as exc_info:
        await coordinator.get("task-missing")
    assert exc_info.value.reason.reason == "offline"


@pytest.mark.asyncio
async def test_failed_create_adds_provisional_task_and_one_queue_entry(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    cache: LocalCache,
    queue: PendingQueue,
) -> None:
    remote.online = False

    with pytest.raises(RemoteUnavailable):
        await coordinator.create(_new("Offline idea", priority=TaskPriority.HIGH))

    [provisional] = cache.read_all()
    assert provisional.id.startswith("temp_")
    assert provisional.title == "Offline idea"
    assert provisional.priority == TaskPriority.HIGH
    assert provisional.status == TaskStatus.TODO

    [entry] = queue.list()
    assert entry.id == provisional.id
    assert entry.type == OperationType.CREATE
    assert entry.data == {
        "title": "Offline idea",
        "description": "Agree on the sprint goals",
        "priority": "HIGH",
    }


def test_temp_ids_are_unique() -> None:
    assert len({make_temp_id() for _ in range(200)}) == 200


@pytest.mark.asyncio
async def test_failed_update_merges_only_given_fields(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    cache: LocalCache,
    queue: PendingQueue,
) -> None:
    task = remote.seed(title="Keep me", priority=TaskPriority.LOW, updated_at=LONG_AGO)
    await coordinator.get_all()
    remote.online = False

    with pytest.raises(RemoteUnavailable):
        await coordinator.update(task.id, TaskUpdate(status=TaskStatus.COMPLETED))

    cached = cache.find(task.id)
    assert cached.status == TaskStatus.COMPLETED
    assert cached.title == "Keep me"
    assert cached.priority == TaskPriority.LOW
    assert cached.description == task.description
    assert cached.updated_at > task.updated_at
    assert cached.created_at == task.created_at

    [entry] = queue.list()
    assert (entry.id, entry.type, entry.data) == (
        task.id,
        OperationType.UPDATE,
        {"status": "COMPLETED"},
    )


@pytest.mark.asyncio
async def test_failed_update_of_uncached_task_still_queues(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    cache: LocalCache,
    queue: PendingQueue,
) -> None:
    remote.online = False

    with pytest.raises(RemoteUnavailable):
        await coordinator.update("task-9", TaskUpdate(title="Renamed"))

    assert cache.read_all() == []
    assert [op.id for op in queue.list()] == ["task-9"]


@pytest.mark.asyncio
async def test_failed_delete_removes_locally_and_queues(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    cache: LocalCache,
    queue: PendingQueue,
) -> None:
    task = remote.seed()
    await coordinator.get_all()
    remote.online = False

    with pytest.raises(RemoteUnavailable):
        await coordinator.delete(task.id)

    assert cache.read_all() == []
    [entry] = queue.list()
    assert (entry.id, entry.type, entry.data) == (task.id, OperationType.DELETE, None)


@pytest.mark.asyncio
async def test_second_failure_on_same_task_appends(
    coordinator: SyncCoordinator, remote: FakeRemoteApi, queue: PendingQueue
) -> None:
    task = remote.seed()
    remote.online = False

    for update in (TaskUpdate(title="One more"), TaskUpdate(title="And again")):
        with pytest.raises(RemoteUnavailable):
            await coordinator.update(task.id, update)

    assert [op.data["title"] for op in queue.list()] == ["One more", "And again"]


@pytest.mark.asyncio
async def test_sync_all_succeed_empties_queue_and_mirrors_server(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    cache: LocalCache,
    queue: PendingQueue,
) -> None:
    doomed = remote.seed(title="Doomed")
    edited = remote.seed(title="Edited")
    await coordinator.get_all()
    remote.online = False

    with pytest.raises(RemoteUnavailable):
        await coordinator.create(_new("Made offline"))
    with pytest.raises(RemoteUnavailable):
        await coordinator.update(edited.id, TaskUpdate(priority=TaskPriority.HIGH))
    with pytest.raises(RemoteUnavailable):
        await coordinator.delete(doomed.id)
    assert len(queue) == 3

    remote.online = True
    report = await coordinator.sync()

    assert queue.list() == []
    assert (report.attempted, report.succeeded, report.failed, report.remaining) == (
        3,
        3,
        0,
        0,
    )
    assert report.refreshed
    fresh = await remote.list_tasks()
    assert _dump(cache.read_all()) == _dump(fresh.value)
    assert {t.title for t in cache.read_all()} == {"Edited", "Made offline"}
    assert not any(t.id.startswith("temp_") for t in cache.read_all())


@pytest.mark.asyncio
async def test_sync_keeps_only_the_failing_entry(
    coordinator: SyncCoordinator, remote: FakeRemoteApi, queue: PendingQueue
) -> None:
    tasks = [remote.seed(title=f"Task {i}") for i in range(3)]
    remote.online = False
    for task in tasks:
        with pytest.raises(RemoteUnavailable):
            await coordinator.update(task.id, TaskUpdate(status=TaskStatus.IN_PROGRESS))
    stuck = queue.list()[1]

    remote.online = True
    remote.failing = {tasks[1].id}
    report = await coordinator.sync()

    assert _dump(queue.list()) == _dump([stuck])
    assert (report.succeeded, report.failed, report.remaining) == (2, 1, 1)
    # no early abort: the entry after the failure was still replayed
    assert ("update", tasks[2].id) in remote.calls


@pytest.mark.asyncio
async def test_sync_replays_in_fifo_order(
    coordinator: SyncCoordinator, remote: FakeRemoteApi
) -> None:
    a = remote.seed()
    b = remote.seed()
    remote.online = False
    with pytest.raises(RemoteUnavailable):
        await coordinator.delete(b.id)
    with pytest.raises(RemoteUnavailable):
        await coordinator.update(a.id, TaskUpdate(title="Later edit"))

    remote.online = True
    remote.calls.clear()
    await coordinator.sync()

    assert remote.calls[:2] == [("delete", b.id), ("update", a.id)]


@pytest.mark.asyncio
async def test_sync_with_empty_queue_skips_refresh(
    coordinator: SyncCoordinator, remote: FakeRemoteApi, cache: LocalCache
) -> None:
    report = await coordinator.sync()

    assert report.attempted == 0
    assert not report.refreshed
    assert remote.calls == []
    assert cache.last_sync_time() is None


@pytest.mark.asyncio
async def test_sync_while_still_offline_keeps_everything(
    coordinator: SyncCoordinator,
    remote: FakeRemoteApi,
    cache: LocalCache,
    queue: PendingQueue,
) -> None:
    remote.online = False
    with pytest.raises(RemoteUnavailable):
        await coordinator.create(_new())
    before = cache.read_all()

    report = await coordinator.sync()

    assert report.failed == 1
    assert not report.refreshed
    assert len(queue) == 1
    assert _dump(cache.read_all()) == _dump(before)


@pytest.mark.asyncio
async def test_sync_success_removes_all_entries_for_that_id(
    coordinator: SyncCoordinator, remote: FakeRemoteApi, queue: PendingQueue
) -> None:
    task = remote.seed()
    other = remote.seed()
    remote.online = False
    with pytest.raises(RemoteUnavailable):
        await coordinator.update(task.id, TaskUpdate(status=TaskStatus.COMPLETED))
    with pytest.raises(RemoteUnavailable):
        await coordinator.update(other.id, TaskUpdate(title="Other edit"))
    with pytest.raises(RemoteUnavailable):
        await coordinator.delete(task.id)

    remote.online = True
    remote.failing = {other.id}
    await coordinator.sync()

    # the update for task succeeded first and took the queued delete with it
    assert [op.id for op in queue.list()] == [other.id]


@pytest.mark.asyncio
async def test_sync_skips_entries_removed_by_an_earlier_success(
    coordinator: SyncCoordinator, remote: FakeRemoteApi, queue: PendingQueue
) -> None:
    remote.online = False
    with pytest.raises(RemoteUnavailable):
        await coordinator.create(_new("Short-lived"))
    [entry] = queue.list()
    with pytest.raises(RemoteUnavailable):
        await coordinator.delete(entry.id)

    remote.online = True
    before = len(remote.calls)
    report = await coordinator.sync()

    # the create succeeded and removed the delete for the temp id with it
    assert remote.calls[before:] == [("create", "Short-lived"), ("list", "*")]
    assert report.attempted == 2
    assert report.succeeded == 1
    assert report.skipped == 1
    assert report.failed == 0
    assert report.remaining == 0

from taskpro.client.context import ClientContext
from taskpro.client.coordinator import SyncCoordinator, SyncReport
from taskpro.client.errors import (
    RemoteUnavailable,
    StorageError,
    StorageQuotaExceeded,
    TaskSyncError,
)
from taskpro.client.local_cache import LocalCache
from taskpro.client.pending_queue import OperationType, PendingOperation, PendingQueue

__all__ = [
    "ClientContext",
    "LocalCache",
    "OperationType",
    "PendingOperation",
    "PendingQueue",
    "RemoteUnavailable",
    "StorageError",
    "StorageQuotaExceeded",
    "SyncCoordinator",
    "SyncReport",
    "TaskSyncError",
]

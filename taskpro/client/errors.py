class TaskSyncError(Exception):
    """Base error for the offline-sync client"""


class RemoteUnavailable(TaskSyncError):
    """
    The remote API call failed; any local fallback has already been applied.

    Every failure is treated as "offline" whatever its cause, so callers get
    this one type and can inspect ``reason`` for messaging.
    """

    def __init__(self, reason):
        self.reason = reason
        super().__init__(str(reason))


class StorageError(TaskSyncError):
    """The storage medium could not read or write a key"""


class StorageQuotaExceeded(StorageError):
    """A write would push the storage medium past its capacity"""

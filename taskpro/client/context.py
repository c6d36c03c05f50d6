import logging

from taskpro.client.connectivity import ConnectivityMonitor
from taskpro.client.coordinator import SyncCoordinator
from taskpro.client.local_cache import LocalCache
from taskpro.client.pending_queue import PendingQueue
from taskpro.client.remote import RemoteTaskApi
from taskpro.client.storage import KeyValueStorage, RedisStorage, create_storage
from taskpro.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ClientContext:
    """
    Everything one client instance owns: storage, cache, queue, API and
    coordinator. Build one per process (or per test) and pass it around.

        async with ClientContext.from_settings() as ctx:
            tasks = await ctx.coordinator.get_all()
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        api: RemoteTaskApi,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.storage = storage
        self.api = api
        self.cache = LocalCache(storage)
        self.queue = PendingQueue(storage)
        self.coordinator = SyncCoordinator(api, self.cache, self.queue)
        self.connectivity = ConnectivityMonitor(self.coordinator)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ClientContext":
        settings = settings or get_settings()
        storage = create_storage(settings)
        api = RemoteTaskApi.from_url(settings.api_url, timeout=settings.request_timeout)
        logger.info(
            f"Client context ready: api={settings.api_url} "
            f"storage={settings.storage_backend}"
        )
        return cls(storage, api, settings)

    async def watch_connectivity(self) -> None:
        await self.connectivity.watch(self.api, self.settings.connectivity_interval)

    def clear_all(self) -> None:
        self.cache.clear()
        self.queue.clear()

    async def aclose(self) -> None:
        await self.api.aclose()
        if isinstance(self.storage, RedisStorage):
            self.storage.close()

    async def __aenter__(self) -> "ClientContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

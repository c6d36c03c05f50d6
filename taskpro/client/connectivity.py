import asyncio
import logging

from taskpro.client.coordinator import SyncCoordinator, SyncReport
from taskpro.client.remote import RemoteTaskApi

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """
    Online/offline signal for one client.

    Only an offline -> online transition starts a sync pass, plus one pass
    when watch() first finds the API reachable. There is no single-flight
    guard: overlapping passes may interleave on the queue.
    """

    def __init__(self, coordinator: SyncCoordinator, online: bool = True):
        self.coordinator = coordinator
        self._online = online

    @property
    def online(self) -> bool:
        return self._online

    async def set_online(self, online: bool) -> SyncReport | None:
        came_back = online and not self._online
        if online != self._online:
            logger.info("Connection restored" if online else "Connection lost")
        self._online = online
        if came_back:
            return await self.coordinator.sync()
        return None

    async def watch(self, api: RemoteTaskApi, interval: float = 10.0) -> None:
        """Poll the API health endpoint forever, feeding set_online."""
        # operations persisted by an earlier session replay on the first good check
        if await api.health():
            self._online = True
            await self.coordinator.sync()
        else:
            await self.set_online(False)
        while True:
            await asyncio.sleep(interval)
            await self.set_online(await api.health())

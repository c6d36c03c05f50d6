import logging
from typing import Any

import httpx
from pydantic import ValidationError

from taskpro.client.result import Failed, Ok, Result
from taskpro.models import Task

logger = logging.getLogger(__name__)


class RemoteTaskApi:
    """
    Thin async client for the task REST API.

    Nothing here raises for a failed call. Transport errors, timeouts,
    non-2xx statuses and undecodable bodies all come back as Failed, so the
    caller can branch on the result instead of catching.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 5.0) -> "RemoteTaskApi":
        client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
        return cls(client)

    async def _request(self, method: str, url: str, **kwargs) -> Result[Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return Ok(response.json())
        except httpx.HTTPStatusError as e:
            return Failed(
                reason=_error_message(e.response),
                status_code=e.response.status_code,
                error=e,
            )
        except httpx.HTTPError as e:
            return Failed(reason=f"{type(e).__name__}: {e}", error=e)
        except ValueError as e:
            return Failed(reason=f"Invalid response body: {e}", error=e)

    async def _task(self, method: str, url: str, **kwargs) -> Result[Task]:
        result = await self._request(method, url, **kwargs)
        if isinstance(result, Failed):
            return result
        try:
            return Ok(Task.model_validate(result.value["data"]))
        except (KeyError, TypeError, ValidationError) as e:
            return Failed(reason=f"Unexpected task payload: {e}", error=e)

    async def list_tasks(self) -> Result[list[Task]]:
        result = await self._request("GET", "/tasks")
        if isinstance(result, Failed):
            return result
        try:
            return Ok([Task.model_validate(item) for item in result.value["data"]])
        except (KeyError, TypeError, ValidationError) as e:
            return Failed(reason=f"Unexpected task list payload: {e}", error=e)

    async def get_task(self, task_id: str) -> Result[Task]:
        return await self._task("GET", f"/tasks/{task_id}")

    async def create_task(self, data: dict[str, Any]) -> Result[Task]:
        return await self._task("POST", "/tasks", json=data)

    async def update_task(self, task_id: str, data: dict[str, Any]) -> Result[Task]:
        return await self._task("PUT", f"/tasks/{task_id}", json=data)

    async def delete_task(self, task_id: str) -> Result[dict]:
        return await self._request("DELETE", f"/tasks/{task_id}")

    async def health(self) -> bool:
        result = await self._request("GET", "/health")
        return isinstance(result, Ok)

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.reason_phrase or f"HTTP {response.status_code}"

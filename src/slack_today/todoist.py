from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import UpstreamError
from .schemas import TodoistCompletedItem, TodoistCompletedPage, TodoistProject, TodoistTask
from .settings import Settings

logger = logging.getLogger(__name__)

_TASKS = TypeAdapter(List[TodoistTask])
_PROJECTS = TypeAdapter(List[TodoistProject])

SYNC_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


@dataclass(frozen=True)
class TodayTasks:
    """
    Raw Todoist results for one /today request.
    """
    active: List[TodoistTask] = field(default_factory=list)
    completed: List[TodoistCompletedItem] = field(default_factory=list)


# PUBLIC_INTERFACE
class TaskSource(ABC):
    """Abstract read-only contract for the upstream task service."""

    @abstractmethod
    async def fetch_active_tasks(self, task_filter: str) -> List[TodoistTask]:
        """Return active tasks matching a Todoist filter query."""

    @abstractmethod
    async def find_project_id(self, name: str) -> str:
        """Resolve a project name to its id. Raise UpstreamError if it does not exist."""

    @abstractmethod
    async def fetch_completed_tasks(
        self, project_id: str, since: datetime, until: datetime
    ) -> List[TodoistCompletedItem]:
        """Return tasks of a project completed within [since, until)."""


class TodoistClient(TaskSource):
    """
    Todoist REST v2 / Sync v9 client over httpx.

    Every non-2xx status, transport failure or malformed payload is raised as
    UpstreamError. No retries.
    """

    def __init__(
        self,
        api_token: str,
        api_base_url: str,
        sync_base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._headers = {"Authorization": f"Bearer {api_token}"}
        self._api_base_url = api_base_url.rstrip("/")
        self._sync_base_url = sync_base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            async with httpx.AsyncClient(
                headers=self._headers, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                f"Todoist API error: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Todoist request failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamError(f"Todoist returned invalid JSON from {url}") from e

    async def fetch_active_tasks(self, task_filter: str) -> List[TodoistTask]:
        data = await self._get_json(f"{self._api_base_url}/tasks", {"filter": task_filter})
        try:
            return _TASKS.validate_python(data)
        except ValidationError as e:
            raise UpstreamError(f"Unexpected task payload: {e.error_count()} validation errors") from e

    async def find_project_id(self, name: str) -> str:
        data = await self._get_json(f"{self._api_base_url}/projects")
        try:
            projects = _PROJECTS.validate_python(data)
        except ValidationError as e:
            raise UpstreamError(f"Unexpected project payload: {e.error_count()} validation errors") from e
        wanted = name.strip().lower()
        for project in projects:
            if project.name.strip().lower() == wanted:
                return project.id
        raise UpstreamError(f"Todoist project not found: {name!r}")

    async def fetch_completed_tasks(
        self, project_id: str, since: datetime, until: datetime
    ) -> List[TodoistCompletedItem]:
        params = {
            "project_id": project_id,
            "since": _sync_time(since),
            "until": _sync_time(until),
            "annotate_items": "true",
        }
        data = await self._get_json(f"{self._sync_base_url}/completed/get_all", params)
        try:
            return TodoistCompletedPage.model_validate(data).items
        except ValidationError as e:
            raise UpstreamError(f"Unexpected completed payload: {e.error_count()} validation errors") from e


def _sync_time(value: datetime) -> str:
    """The Sync API takes naive UTC timestamps."""
    return value.astimezone(timezone.utc).strftime(SYNC_TIME_FORMAT)


# PUBLIC_INTERFACE
def day_bounds(now: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """
    Return [local midnight, local midnight + 24h) for the day containing `now`
    in zone `tz`. A naive `now` is taken to be in `tz` already.
    """
    local = now.replace(tzinfo=tz) if now.tzinfo is None else now.astimezone(tz)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=24)


async def _completed_today(
    source: TaskSource, project_name: str, now: datetime, tz: tzinfo
) -> List[TodoistCompletedItem]:
    project_id = await source.find_project_id(project_name)
    since, until = day_bounds(now, tz)
    return await source.fetch_completed_tasks(project_id, since, until)


# PUBLIC_INTERFACE
async def fetch_today(source: TaskSource, settings: Settings, now: datetime) -> TodayTasks:
    """
    Fetch today's active tasks and, when a project is configured, the tasks
    completed today in that project. The two calls run concurrently; if either
    fails the whole fetch fails with UpstreamError and the other call is
    cancelled.
    """
    if not settings.project_name:
        return TodayTasks(active=await source.fetch_active_tasks(settings.task_filter))

    tz = settings.tzinfo
    active_task = asyncio.create_task(source.fetch_active_tasks(settings.task_filter))
    completed_task = asyncio.create_task(_completed_today(source, settings.project_name, now, tz))
    tasks = (active_task, completed_task)
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        # Also reached when the request itself is cancelled
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in tasks:
        if task in done and not task.cancelled() and task.exception() is not None:
            raise task.exception()

    active, completed = active_task.result(), completed_task.result()
    logger.debug("Fetched %d active and %d completed tasks", len(active), len(completed))
    return TodayTasks(active=active, completed=completed)


# PUBLIC_INTERFACE
def get_task_source(settings: Settings) -> TaskSource:
    """
    Factory to return the task source for the given settings.
    Secrets must already have been validated.
    """
    return TodoistClient(
        api_token=settings.todoist_api_token or "",
        api_base_url=settings.todoist_api_base_url,
        sync_base_url=settings.todoist_sync_base_url,
        timeout=settings.request_timeout,
    )

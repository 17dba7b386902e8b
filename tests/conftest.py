"""Shared fixtures: signed Slack requests and an in-memory task source."""

import hashlib
import hmac
import time
from datetime import datetime
from typing import List, Optional
from urllib.parse import urlencode

import pytest

from slack_today.errors import UpstreamError
from slack_today.schemas import TodoistCompletedItem, TodoistTask
from slack_today.settings import Settings
from slack_today.todoist import TaskSource

SIGNING_SECRET = "8f742231b10e8888abcd99yyyzzz85a5"
API_TOKEN = "todoist-test-token"
ALLOWED_USER = "U0ALLOWED"


def sign(secret: str, timestamp: str, body: str) -> str:
    base = f"v0:{timestamp}:{body}".encode("utf-8")
    return "v0=" + hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()


class FakeTaskSource(TaskSource):
    """In-memory TaskSource recording the calls it receives."""

    def __init__(
        self,
        active: Optional[List[dict]] = None,
        completed: Optional[List[dict]] = None,
        projects: Optional[dict] = None,
        fail_active: bool = False,
        fail_completed: bool = False,
    ) -> None:
        self.active = [TodoistTask.model_validate(t) for t in (active or [])]
        self.completed = [TodoistCompletedItem.model_validate(c) for c in (completed or [])]
        self.projects = projects or {}
        self.fail_active = fail_active
        self.fail_completed = fail_completed
        self.calls: List[tuple] = []

    async def fetch_active_tasks(self, task_filter: str) -> List[TodoistTask]:
        self.calls.append(("active", task_filter))
        if self.fail_active:
            raise UpstreamError("Todoist API error: 503 Service Unavailable")
        return list(self.active)

    async def find_project_id(self, name: str) -> str:
        self.calls.append(("project", name))
        if name not in self.projects:
            raise UpstreamError(f"Todoist project not found: {name!r}")
        return self.projects[name]

    async def fetch_completed_tasks(
        self, project_id: str, since: datetime, until: datetime
    ) -> List[TodoistCompletedItem]:
        self.calls.append(("completed", project_id, since, until))
        if self.fail_completed:
            raise UpstreamError("Todoist API error: 500 Internal Server Error")
        return list(self.completed)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        todoist_api_token=API_TOKEN,
        slack_signing_secret=SIGNING_SECRET,
        allowed_user_ids=frozenset({ALLOWED_USER}),
        access_contact="owner@example.com",
        timezone="UTC",
        clock_format="12h",
    )


@pytest.fixture
def slack_request():
    """Build (headers, body) for a slash command signed with the test secret."""

    def _build(user_id: str = ALLOWED_USER, secret: str = SIGNING_SECRET, timestamp: Optional[str] = None):
        body = urlencode(
            {
                "token": "legacy",
                "team_id": "T0001",
                "channel_id": "C2147483705",
                "user_id": user_id,
                "user_name": "steve",
                "command": "/today",
                "text": "",
                "response_url": "https://hooks.slack.com/commands/1234/5678",
            }
        )
        ts = timestamp or str(int(time.time()))
        headers = {
            "X-Slack-Request-Timestamp": ts,
            "X-Slack-Signature": sign(secret, ts, body),
            "Content-Type": "application/x-www-form-urlencoded",
        }
        return headers, body

    return _build

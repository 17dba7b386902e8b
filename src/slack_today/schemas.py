from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import parse_qs

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _parse_due_date(value: Any) -> Any:
    """
    Internal helper to normalize Todoist's due.date into a date.
    - The REST API sends 'YYYY-MM-DD'.
    - The Sync API sends 'YYYY-MM-DDTHH:MM:SS' for timed tasks; only the date part is kept here.
    """
    if isinstance(value, str):
        s = value.strip()
        try:
            return dt.date.fromisoformat(s[:10])
        except ValueError as e:
            raise ValueError(
                "Invalid due date format. Expected ISO8601 date (e.g., '2025-01-31')."
            ) from e
    return value


# PUBLIC_INTERFACE
class SlashCommand(BaseModel):
    """
    Fields of a Slack slash command request (application/x-www-form-urlencoded).
    Only user_id is consulted; the rest are kept for logging.
    """

    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(default="", description="Slack user id of the caller")
    user_name: Optional[str] = Field(default=None, description="Slack user name of the caller")
    command: Optional[str] = Field(default=None, description="The slash command, e.g. '/today'")
    text: Optional[str] = Field(default=None, description="Text typed after the command")
    team_id: Optional[str] = None
    channel_id: Optional[str] = None
    response_url: Optional[str] = None

    @classmethod
    def from_form(cls, body: str) -> "SlashCommand":
        """Parse a url-encoded form body, keeping the first value of each field."""
        parsed = parse_qs(body, keep_blank_values=True)
        return cls(**{k: v[0] for k, v in parsed.items() if v})


# PUBLIC_INTERFACE
class TodoistDue(BaseModel):
    """Due information of a Todoist task. `datetime` is set only for tasks with a specific time."""

    date: dt.date
    datetime: Optional[dt.datetime] = None
    string: Optional[str] = None
    timezone: Optional[str] = None
    is_recurring: bool = False

    @model_validator(mode="before")
    @classmethod
    def promote_sync_datetime(cls, data: Any) -> Any:
        """
        Sync API items carry the time inside 'date' and have no 'datetime' key.
        Copy it over so both shapes expose the time the same way.
        """
        if isinstance(data, dict) and not data.get("datetime"):
            raw = data.get("date")
            if isinstance(raw, str) and "T" in raw:
                data = {**data, "datetime": raw}
        return data

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TodoistDuration(BaseModel):
    """Estimated duration of a task; unit is 'minute' or 'day'."""

    amount: int = Field(..., ge=0)
    unit: str


# PUBLIC_INTERFACE
class TodoistTask(BaseModel):
    """
    An active task as returned by GET /rest/v2/tasks.

    Priority follows Todoist's API scale: 4 is the most urgent (shown as P1 in
    the Todoist apps), 1 is the default.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "id": "2995104339",
                "content": "Buy milk",
                "description": "",
                "priority": 4,
                "due": {
                    "date": "2025-02-01",
                    "datetime": "2025-02-01T15:00:00Z",
                    "string": "today at 3pm",
                    "is_recurring": False,
                },
                "duration": {"amount": 90, "unit": "minute"},
                "project_id": "2203306141",
                "labels": ["errand"],
                "is_completed": False,
            }
        },
    )

    id: str
    content: str
    description: Optional[str] = None
    priority: int = 1
    due: Optional[TodoistDue] = None
    duration: Optional[TodoistDuration] = None
    project_id: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    is_completed: bool = False

    @field_validator("id", "project_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


# PUBLIC_INTERFACE
class TodoistProject(BaseModel):
    """A project as returned by GET /rest/v2/projects."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class TodoistItemObject(BaseModel):
    """Original task metadata embedded in a completed item when annotate_items=true."""

    model_config = ConfigDict(extra="ignore")

    priority: Optional[int] = None
    due: Optional[TodoistDue] = None
    duration: Optional[TodoistDuration] = None
    labels: List[str] = Field(default_factory=list)


# PUBLIC_INTERFACE
class TodoistCompletedItem(BaseModel):
    """
    A completed task as returned by the Sync API's completed/get_all endpoint.
    Its layout differs from TodoistTask: metadata lives under item_object.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    task_id: Optional[str] = None
    content: str
    completed_at: dt.datetime
    project_id: Optional[str] = None
    item_object: Optional[TodoistItemObject] = None

    @field_validator("id", "task_id", "project_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class TodoistCompletedPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: List[TodoistCompletedItem] = Field(default_factory=list)


# PUBLIC_INTERFACE
class TextObject(BaseModel):
    """Slack Block Kit text object."""

    type: Literal["plain_text", "mrkdwn"] = "mrkdwn"
    text: str
    emoji: Optional[bool] = None


# PUBLIC_INTERFACE
class SlackBlock(BaseModel):
    """One Block Kit block: header, section, divider or context."""

    type: Literal["header", "section", "divider", "context"]
    text: Optional[TextObject] = None
    elements: Optional[List[TextObject]] = None


# PUBLIC_INTERFACE
class SlackMessage(BaseModel):
    """
    Slash command response body.

    `text` is always populated so clients that cannot render blocks still get
    a readable summary.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "response_type": "ephemeral",
                "text": "Today's Tasks (1): *3:00 PM* Buy milk 🔴 P1 `1h30m`",
                "blocks": [
                    {"type": "header", "text": {"type": "plain_text", "text": "📋 Today's Tasks (1)", "emoji": True}},
                    {"type": "section", "text": {"type": "mrkdwn", "text": "*3:00 PM* Buy milk 🔴 P1 `1h30m`"}},
                ],
            }
        }
    )

    response_type: Literal["ephemeral", "in_channel"] = "ephemeral"
    text: str = Field(..., min_length=1)
    blocks: List[SlackBlock] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for Slack, omitting unset optional fields and an empty blocks list."""
        payload = self.model_dump(exclude_none=True)
        if not payload.get("blocks"):
            payload.pop("blocks", None)
        return payload

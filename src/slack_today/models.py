from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import List, Optional, TypedDict

from .schemas import TodoistCompletedItem, TodoistDue, TodoistDuration, TodoistTask


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task normalized from either Todoist shape, as consumed by the formatter.

    Fields:
    - id: Todoist task id
    - content: Task title (Slack mrkdwn allowed)
    - priority: Todoist priority 1..4 (4 = most urgent)
    - due_date: Due date, if any
    - due_datetime: Aware due timestamp in the configured zone, only for tasks with a specific time
    - duration_amount / duration_unit: Estimated duration ('minute' or 'day'), if any
    - labels: Todoist labels
    - completed_at: Completion timestamp for completed tasks, None for active ones
    """

    id: str
    content: str
    priority: int
    due_date: Optional[date]
    due_datetime: Optional[datetime]
    duration_amount: Optional[int]
    duration_unit: Optional[str]
    labels: List[str]
    completed_at: Optional[datetime]


def _localize(value: Optional[datetime], tz: tzinfo) -> Optional[datetime]:
    """Floating (naive) times are read in `tz`; fixed ones are converted to it."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _entity(
    id: str,
    content: str,
    priority: Optional[int],
    due: Optional[TodoistDue],
    duration: Optional[TodoistDuration],
    labels: List[str],
    tz: tzinfo,
    completed_at: Optional[datetime] = None,
) -> TaskEntity:
    return {
        "id": id,
        "content": content,
        "priority": priority or 1,
        "due_date": due.date if due else None,
        "due_datetime": _localize(due.datetime, tz) if due else None,
        "duration_amount": duration.amount if duration else None,
        "duration_unit": duration.unit if duration else None,
        "labels": list(labels),
        "completed_at": _localize(completed_at, tz),
    }


# PUBLIC_INTERFACE
def normalize_active_task(task: TodoistTask, tz: tzinfo) -> TaskEntity:
    """Map a REST API task into a TaskEntity."""
    return _entity(task.id, task.content, task.priority, task.due, task.duration, task.labels, tz)


# PUBLIC_INTERFACE
def normalize_completed_item(item: TodoistCompletedItem, tz: tzinfo) -> TaskEntity:
    """
    Map a Sync API completed item into a TaskEntity. Priority, due and duration
    come from the embedded item_object when Todoist included it.
    """
    meta = item.item_object
    return _entity(
        item.task_id or item.id,
        item.content,
        meta.priority if meta else None,
        meta.due if meta else None,
        meta.duration if meta else None,
        meta.labels if meta else [],
        tz,
        # Sync API completion times are UTC
        completed_at=item.completed_at if item.completed_at.tzinfo else item.completed_at.replace(tzinfo=timezone.utc),
    )

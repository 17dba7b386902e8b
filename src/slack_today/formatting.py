from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import TaskEntity
from .schemas import SlackBlock, SlackMessage, TextObject

# Todoist API priority 4 is what the apps display as P1
PRIORITY_LABELS = {
    4: "🔴 P1",
    3: "🟠 P2",
    2: "🔵 P3",
}

NO_TASKS_TEXT = "No tasks for today! 🎉"
NO_TASKS_DETAIL = "*No tasks for today!* 🎉\nEnjoy your free time or add some tasks in Todoist."


# PUBLIC_INTERFACE
def priority_label(priority: Optional[int]) -> str:
    """Return the label for a Todoist priority, or '' for 1, None and unknown values."""
    if priority is None:
        return ""
    return PRIORITY_LABELS.get(priority, "")


# PUBLIC_INTERFACE
def format_duration(amount: Optional[int], unit: Optional[str]) -> str:
    """
    Render a Todoist duration compactly.

    - unit 'day': '{amount}d'
    - unit 'minute': hours and minutes with zero parts omitted ('1h30m', '1h', '45m')
    - anything else, or no amount: ''
    """
    if amount is None or unit is None:
        return ""
    if unit == "day":
        return f"{amount}d"
    if unit == "minute":
        hours, minutes = divmod(amount, 60)
        parts = []
        if hours:
            parts.append(f"{hours}h")
        if minutes or not hours:
            parts.append(f"{minutes}m")
        return "".join(parts)
    return ""


# PUBLIC_INTERFACE
def format_clock(value: datetime, clock_format: str = "12h") -> str:
    """Render a time of day as '3:05 PM' (12h) or '15:05' (24h)."""
    if clock_format == "24h":
        return f"{value.hour:02d}:{value.minute:02d}"
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def _sort_key(task: TaskEntity) -> float:
    due = task["due_datetime"]
    return due.timestamp() if due is not None else math.inf


# PUBLIC_INTERFACE
def sort_tasks(tasks: Iterable[TaskEntity]) -> List[TaskEntity]:
    """
    Sort tasks by due time ascending; tasks without a specific time go last.
    The sort is stable, so ties keep the upstream order.
    """
    return sorted(tasks, key=_sort_key)


# PUBLIC_INTERFACE
def partition_tasks(tasks: Iterable[TaskEntity]) -> Tuple[List[TaskEntity], List[TaskEntity]]:
    """Split sorted tasks into (scheduled, unscheduled), keeping order within each group."""
    scheduled: List[TaskEntity] = []
    unscheduled: List[TaskEntity] = []
    for task in sort_tasks(tasks):
        (scheduled if task["due_datetime"] is not None else unscheduled).append(task)
    return scheduled, unscheduled


# PUBLIC_INTERFACE
def format_task_line(task: TaskEntity, clock_format: str = "12h") -> str:
    """
    One-line mrkdwn rendering of a task:
    '*3:00 PM* Write report 🔴 P1 `1h30m` #work'
    """
    parts: List[str] = []
    if task["due_datetime"] is not None:
        parts.append(f"*{format_clock(task['due_datetime'], clock_format)}*")
    parts.append(task["content"])
    label = priority_label(task["priority"])
    if label:
        parts.append(label)
    duration = format_duration(task["duration_amount"], task["duration_unit"])
    if duration:
        parts.append(f"`{duration}`")
    parts.extend(f"#{name}" for name in task["labels"])
    return " ".join(parts)


def format_completed_line(task: TaskEntity, clock_format: str = "12h") -> str:
    line = f"✅ ~{task['content']}~"
    if task["completed_at"] is not None:
        line += f" _(done {format_clock(task['completed_at'], clock_format)})_"
    return line


def _section(lines: Sequence[str]) -> SlackBlock:
    return SlackBlock(type="section", text=TextObject(type="mrkdwn", text="\n".join(lines)))


def _divider() -> SlackBlock:
    return SlackBlock(type="divider")


# PUBLIC_INTERFACE
def celebration_message() -> SlackMessage:
    """The fixed reply used when there is nothing due and nothing completed today."""
    return SlackMessage(
        response_type="ephemeral",
        text=NO_TASKS_TEXT,
        blocks=[_section([NO_TASKS_DETAIL])],
    )


# PUBLIC_INTERFACE
def build_today_message(
    active: Sequence[TaskEntity],
    completed: Sequence[TaskEntity] = (),
    clock_format: str = "12h",
    now: Optional[datetime] = None,
) -> SlackMessage:
    """
    Build the /today reply.

    Layout:
    - header with the active task count
    - scheduled tasks by time, a divider, then unscheduled tasks in upstream order
      (the divider only appears when both groups are non-empty)
    - a 'Completed today' section when completed tasks were fetched
    - a context footnote with the fetch time
    """
    if not active and not completed:
        return celebration_message()

    scheduled, unscheduled = partition_tasks(active)
    scheduled_lines = [format_task_line(t, clock_format) for t in scheduled]
    unscheduled_lines = [format_task_line(t, clock_format) for t in unscheduled]
    completed_lines = [format_completed_line(t, clock_format) for t in completed]

    blocks: List[SlackBlock] = [
        SlackBlock(
            type="header",
            text=TextObject(type="plain_text", text=f"📋 Today's Tasks ({len(active)})", emoji=True),
        )
    ]
    if scheduled_lines:
        blocks.append(_section(scheduled_lines))
    if scheduled_lines and unscheduled_lines:
        blocks.append(_divider())
    if unscheduled_lines:
        blocks.append(_section(unscheduled_lines))
    if not active:
        blocks.append(_section(["_Nothing left for today._"]))
    if completed_lines:
        blocks.append(_divider())
        blocks.append(_section([f"*Completed today ({len(completed_lines)})*", *completed_lines]))
    if now is not None:
        blocks.append(
            SlackBlock(
                type="context",
                elements=[TextObject(type="mrkdwn", text=f"_Fetched from Todoist at {format_clock(now, clock_format)}_")],
            )
        )

    summary = f"Today's Tasks ({len(active)})"
    all_lines = scheduled_lines + unscheduled_lines + completed_lines
    if all_lines:
        summary += ": " + ", ".join(all_lines)

    return SlackMessage(response_type="ephemeral", text=summary, blocks=blocks)

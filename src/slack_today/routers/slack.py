from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..command import handle_today_command
from ..settings import Settings, get_settings
from ..todoist import TaskSource

router = APIRouter(
    prefix="/slack",
    tags=["slack"],
)


def _get_source() -> Optional[TaskSource]:
    """
    Dependency hook for the task source. None lets the pipeline build the
    Todoist client only once the request is verified and authorized.
    """
    return None


# PUBLIC_INTERFACE
@router.post(
    "/today",
    summary="Slack /today command",
    description=(
        "Slack slash command webhook. The body must be the raw url-encoded form Slack sent, "
        "signed with the X-Slack-Signature and X-Slack-Request-Timestamp headers.\n\n"
        "Replies with an ephemeral Block Kit message listing today's Todoist tasks."
    ),
    responses={
        200: {"description": "Task list, access denial, or upstream error message"},
        401: {"description": "Invalid or stale request signature"},
        500: {"description": "Server configuration error"},
    },
)
async def today_command(
    request: Request,
    settings: Settings = Depends(get_settings),
    source: Optional[TaskSource] = Depends(_get_source),
) -> JSONResponse:
    """
    Handle the /today slash command.
    """
    # The signature covers the exact bytes Slack sent, so read the raw body
    raw = await request.body()
    status_code, body = await handle_today_command(
        request.headers,
        raw.decode("utf-8", errors="replace"),
        settings,
        source=source,
    )
    return JSONResponse(status_code=status_code, content=body)

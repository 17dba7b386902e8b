from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

from .auth import is_authorized, verify_slack_signature
from .errors import AuthenticationError
from .formatting import build_today_message
from .models import normalize_active_task, normalize_completed_item
from .schemas import SlashCommand
from .settings import Settings
from .todoist import TaskSource, fetch_today, get_task_source
from .utils import Envelope, denial_envelope, ephemeral_envelope

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-slack-signature"
TIMESTAMP_HEADER = "x-slack-request-timestamp"


def _header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup; API Gateway and ASGI differ in casing."""
    for key, value in headers.items():
        if key.lower() == name:
            return value or ""
    return ""


# PUBLIC_INTERFACE
async def handle_today_command(
    headers: Mapping[str, str],
    body: str,
    settings: Settings,
    source: Optional[TaskSource] = None,
    now: Optional[datetime] = None,
) -> Envelope:
    """
    Run the /today pipeline for one request.

    Steps:
    1. Validate configuration: secrets, access contact, timezone (ConfigurationError -> 500)
    2. Verify the Slack signature over the raw body (AuthenticationError -> 401)
    3. Check the caller against the allow-list (denial -> 200 with a contact message)
    4. Fetch today's tasks from Todoist (UpstreamError -> 200 with a retry message)
    5. Format and return the ephemeral reply

    Errors are raised; callers map them with utils.error_envelope.

    Returns:
        (status_code, body) ready to be serialized as JSON.
    """
    settings.validate()
    tz = settings.tzinfo
    current = now or datetime.now(timezone.utc)

    if not verify_slack_signature(
        settings.slack_signing_secret or "",
        _header(headers, SIGNATURE_HEADER),
        _header(headers, TIMESTAMP_HEADER),
        body,
        now=current.timestamp(),
    ):
        raise AuthenticationError("Invalid Slack signature")

    command = SlashCommand.from_form(body)
    if not is_authorized(command.user_id, settings.allowed_user_ids):
        logger.warning("Denied %s for unauthorized user %r", command.command or "/today", command.user_id)
        return denial_envelope(settings.access_contact)

    today = await fetch_today(source or get_task_source(settings), settings, current)
    active = [normalize_active_task(t, tz) for t in today.active]
    completed = [normalize_completed_item(c, tz) for c in today.completed]
    logger.info("Replying to %r with %d active and %d completed tasks", command.user_id, len(active), len(completed))

    message = build_today_message(active, completed, settings.clock_format, now=current.astimezone(tz))
    return ephemeral_envelope(message)
